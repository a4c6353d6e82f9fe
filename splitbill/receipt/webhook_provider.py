import base64
import logging
import os

import httpx

from splitbill.receipt.base import ReceiptData
from splitbill.receipt.errors import RecognitionError
from splitbill.receipt.normalize import load_json_payload, normalize_structured_receipt

logger = logging.getLogger("splitbill")

WEBHOOK_TIMEOUT = 30


class WebhookReceiptScanner:
    """Sends the image to an external automation webhook that answers with receipt JSON."""

    def __init__(self, url: str | None = None, timeout: float = WEBHOOK_TIMEOUT):
        self.url = url or os.getenv("RECEIPT_WEBHOOK_URL", "")
        if not self.url:
            raise ValueError("RECEIPT_WEBHOOK_URL is not configured")
        self.timeout = timeout

    async def scan(self, image_bytes: bytes, content_type: str, languages: list[str]) -> ReceiptData:
        payload = {
            "image": base64.b64encode(image_bytes).decode("utf-8"),
            "mimeType": content_type or "image/jpeg",
            "languages": languages,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(self.url, json=payload, headers={"Accept": "application/json"})
        except httpx.TimeoutException as e:
            raise RecognitionError("Receipt webhook timed out") from e
        except httpx.HTTPError as e:
            raise RecognitionError(f"Receipt webhook request failed: {e}") from e

        if resp.status_code >= 400:
            logger.error(f"Receipt webhook error ({resp.status_code}): {resp.text[:200]}")
            raise RecognitionError(f"Receipt webhook returned {resp.status_code}")
        if not resp.text.strip():
            raise RecognitionError("Empty response from receipt webhook")

        return normalize_structured_receipt(load_json_payload(resp.text), languages)
