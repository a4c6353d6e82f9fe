import os

from splitbill.receipt.base import ReceiptScanner
from splitbill.receipt.openai_provider import OpenAIReceiptScanner
from splitbill.receipt.recognition import OCRReceiptScanner
from splitbill.receipt.tesseract_provider import TesseractRecognizer
from splitbill.receipt.webhook_provider import WebhookReceiptScanner


def get_receipt_scanner() -> ReceiptScanner:
    """Return the configured receipt scanning provider."""
    provider = os.getenv("RECEIPT_PROVIDER", "tesseract")
    if provider == "tesseract":
        return OCRReceiptScanner(TesseractRecognizer())
    if provider == "openai":
        return OpenAIReceiptScanner()
    if provider == "webhook":
        return WebhookReceiptScanner()
    raise ValueError(f"Unknown receipt provider: {provider}")
