import asyncio
import logging
import os

from fastapi import APIRouter, File, HTTPException, Query, Request, UploadFile

from splitbill.ratelimit import SCAN_RATE_LIMIT, limiter
from splitbill.receipt.errors import ImageError, NoItemsDetected, NoTextRecognized, ReceiptError, RecognitionError
from splitbill.receipt.extractor import extract_receipt
from splitbill.receipt.factory import get_receipt_scanner
from splitbill.receipt.locales import SUPPORTED_LANGUAGES, normalize_languages
from splitbill.schemas import ParseReceiptIn
from splitbill.serializers import serialize_receipt

logger = logging.getLogger("splitbill")
router = APIRouter()

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB
ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp"}
DEFAULT_SCAN_TIMEOUT = 30  # seconds, whole pipeline


def _receipt_error(status_code: int, error: ReceiptError) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"code": error.code, "message": str(error)})


@router.get("/receipts/languages")
def list_languages():
    return {"languages": [{"code": code, "name": name} for code, name in SUPPORTED_LANGUAGES.items()]}


@router.post("/receipts/parse")
def parse_receipt_text(data: ParseReceiptIn):
    if not data.text.strip():
        raise _receipt_error(422, NoTextRecognized())

    languages = list(normalize_languages(data.languages))
    try:
        result = extract_receipt(data.text, languages)
    except NoItemsDetected as e:
        raise _receipt_error(422, e)
    return serialize_receipt(result)


@router.post("/receipts/scan")
@limiter.limit(SCAN_RATE_LIMIT)
async def scan_receipt(
    request: Request,
    file: UploadFile = File(...),
    languages: list[str] = Query(default=["eng"]),
):
    if file.content_type not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(status_code=400, detail="Unsupported image format. Use JPEG, PNG, or WebP.")

    image_bytes = await file.read()
    if len(image_bytes) == 0:
        raise HTTPException(status_code=400, detail="Empty file")
    if len(image_bytes) > MAX_FILE_SIZE:
        raise HTTPException(status_code=400, detail="Image too large. Maximum size is 10 MB.")

    languages = list(normalize_languages(languages))
    timeout = float(os.getenv("RECEIPT_SCAN_TIMEOUT", DEFAULT_SCAN_TIMEOUT))

    try:
        scanner = get_receipt_scanner()
        result = await asyncio.wait_for(scanner.scan(image_bytes, file.content_type, languages), timeout=timeout)
    except ValueError as e:
        logger.error(f"Receipt scanner config error: {e}")
        raise HTTPException(status_code=503, detail="Receipt scanning is not available")
    except asyncio.TimeoutError:
        logger.warning("Receipt scan timed out", extra={"extra_data": {"timeout": timeout}})
        raise HTTPException(status_code=504, detail="Request timed out. Please try again.")
    except (NoTextRecognized, NoItemsDetected) as e:
        logger.info(f"Receipt scan found nothing usable: {e.code}")
        raise _receipt_error(422, e)
    except ImageError as e:
        raise _receipt_error(400, e)
    except RecognitionError as e:
        logger.error(f"Receipt recognition failed: {e}", exc_info=True)
        raise _receipt_error(502, e)
    except Exception as e:
        logger.error(f"Receipt extraction failed: {e}", exc_info=True)
        raise HTTPException(status_code=502, detail="Failed to extract receipt data. Please try again.")

    logger.info(
        "Receipt scanned",
        extra={"extra_data": {"items_count": len(result.items), "languages": languages}},
    )
    return serialize_receipt(result)
