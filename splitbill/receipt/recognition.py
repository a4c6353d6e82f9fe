"""Image-to-text stage in front of the extractor.

Recognition runs on the enhanced image first and falls back to the
original only when the first attempt's confidence is below
``min_confidence``; the higher-confidence attempt is what gets parsed.
Attempts are sequential because the second depends on the first.
"""

import asyncio
import logging
import os

from PIL import Image

from splitbill.receipt.base import ReceiptData, RecognizedText, TextRecognizer
from splitbill.receipt.errors import NoTextRecognized, RecognitionError
from splitbill.receipt.extractor import extract_receipt
from splitbill.receipt.imaging import image_variants
from splitbill.receipt.locales import normalize_languages

logger = logging.getLogger("splitbill")

MIN_CONFIDENCE = 30


def min_confidence_from_env() -> float:
    return float(os.getenv("RECEIPT_MIN_CONFIDENCE", MIN_CONFIDENCE))


async def recognize_best(
    recognizer: TextRecognizer,
    variants: list[tuple[str, Image.Image]],
    languages: list[str],
    min_confidence: float = MIN_CONFIDENCE,
) -> RecognizedText:
    best: RecognizedText | None = None
    last_error: RecognitionError | None = None

    for variant, image in variants:
        try:
            attempt = await recognizer.recognize(image, languages)
        except RecognitionError as e:
            logger.warning(f"Recognition failed on {variant} image: {e}")
            last_error = e
            continue

        attempt = attempt.model_copy(update={"variant": variant})
        logger.info(
            "Recognition attempt",
            extra={"extra_data": {"variant": variant, "confidence": attempt.confidence, "chars": len(attempt.text)}},
        )
        if best is None or attempt.confidence > best.confidence:
            best = attempt
        if best.confidence >= min_confidence:
            break

    if best is None:
        raise last_error or RecognitionError("No image to recognize")
    if not best.text.strip():
        raise NoTextRecognized()
    if best.confidence < min_confidence:
        logger.warning(f"Low confidence OCR result: {best.confidence}")
    return best


class OCRReceiptScanner:
    """Local pipeline: image variants -> text recognizer -> text extractor."""

    def __init__(self, recognizer: TextRecognizer, min_confidence: float | None = None):
        self.recognizer = recognizer
        self.min_confidence = min_confidence if min_confidence is not None else min_confidence_from_env()

    async def scan(self, image_bytes: bytes, content_type: str, languages: list[str]) -> ReceiptData:
        languages = list(normalize_languages(languages))
        variants = await asyncio.to_thread(image_variants, image_bytes)
        recognized = await recognize_best(self.recognizer, variants, languages, self.min_confidence)
        logger.debug(f"Raw OCR text ({recognized.variant}): {recognized.text}")
        return extract_receipt(recognized.text, languages)
