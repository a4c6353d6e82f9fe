"""Receipt pipeline error taxonomy.

Only ``NoItemsDetected`` is raised by the text extractor itself. The rest
belong to the stages around it (image decoding, recognition, upstream
providers) and are propagated to the caller unchanged.
"""


class ReceiptError(Exception):
    code = "receipt_error"


class NoTextRecognized(ReceiptError):
    code = "no_text_recognized"

    def __init__(self, message: str = "No text was detected in the image. Please ensure the receipt is clear and well-lit."):
        super().__init__(message)


class NoItemsDetected(ReceiptError):
    code = "no_items_detected"

    def __init__(self, message: str = "No items could be detected on the receipt. Please try again or enter items manually."):
        super().__init__(message)


class ImageError(ReceiptError):
    code = "invalid_image"


class RecognitionError(ReceiptError):
    """Lower-level failure talking to a recognition engine or upstream provider."""

    code = "recognition_failed"
