import asyncio
import logging
import os

import pytesseract
from PIL import Image

from splitbill.receipt.base import RecognizedText
from splitbill.receipt.errors import RecognitionError

logger = logging.getLogger("splitbill")

CJK_LANGUAGES = ("jpn", "chi_sim", "chi_tra", "kor")
SOUTHEAST_ASIAN_LANGUAGES = ("tha", "vie")


def order_languages(languages: list[str]) -> list[str]:
    """CJK packs first: Tesseract treats the first language as primary."""
    return sorted(languages, key=lambda lang: 0 if lang in CJK_LANGUAGES else 1)


def tesseract_config(languages: list[str]) -> str:
    # PSM 6 = single uniform block (receipts), PSM 4 = single column of variable-size text
    psm = 4 if any(lang in SOUTHEAST_ASIAN_LANGUAGES for lang in languages) else 6
    return f"--oem 1 --psm {psm} -c preserve_interword_spaces=1"


def text_from_data(data: dict) -> tuple[str, float]:
    """Rebuild line-broken text and mean word confidence from ``image_to_data`` output."""
    lines: dict[tuple, list[str]] = {}
    confidences: list[float] = []
    for i, word in enumerate(data.get("text", [])):
        conf = float(data["conf"][i])
        if not word or not word.strip() or conf < 0:
            continue
        key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
        lines.setdefault(key, []).append(word.strip())
        confidences.append(conf)

    text = "\n".join(" ".join(words) for _, words in sorted(lines.items()))
    confidence = sum(confidences) / len(confidences) if confidences else 0.0
    return text, confidence


class TesseractRecognizer:
    """Text recognition with the local Tesseract OCR binary."""

    def __init__(self, tesseract_cmd: str | None = None):
        tesseract_cmd = tesseract_cmd or os.getenv("TESSERACT_CMD")
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def _recognize(self, image: Image.Image, languages: list[str]) -> RecognizedText:
        ordered = order_languages(languages)
        try:
            data = pytesseract.image_to_data(
                image,
                lang="+".join(ordered),
                config=tesseract_config(ordered),
                output_type=pytesseract.Output.DICT,
            )
        except pytesseract.TesseractNotFoundError as e:
            raise RecognitionError("Tesseract OCR binary not found") from e
        except (pytesseract.TesseractError, RuntimeError) as e:
            raise RecognitionError(f"Tesseract OCR failed: {e}") from e

        text, confidence = text_from_data(data)
        return RecognizedText(text=text, confidence=confidence)

    async def recognize(self, image: Image.Image, languages: list[str]) -> RecognizedText:
        return await asyncio.to_thread(self._recognize, image, languages)
