import base64
import os

from agents import Agent, Runner
from pydantic import BaseModel

from splitbill.receipt.base import ReceiptData
from splitbill.receipt.locales import SUPPORTED_LANGUAGES, default_currency
from splitbill.receipt.normalize import normalize_structured_receipt

INSTRUCTIONS = """\
You are a restaurant receipt parser. Given a receipt image, extract the restaurant, date, currency, line items and charges.

Rules:
- restaurant: the restaurant name as printed, empty string if not visible
- date: the bill date as an ISO date string (YYYY-MM-DD), null if not found
- currency: ISO 4217 code (e.g. "SGD", "JPY"), null if you cannot tell
- items: only actual ordered dishes/drinks
- price is the total price for that line (unit price * quantity), as a decimal number
- quantity defaults to 1
- charges.tax, charges.service_charge, charges.discount: amounts as positive numbers, 0 if not found
- Exclude any total/subtotal/tax/service/payment lines from items
- Keep item names as printed, do not translate them"""


class StructuredItem(BaseModel):
    name: str
    price: float
    quantity: int = 1


class StructuredCharges(BaseModel):
    tax: float = 0
    service_charge: float = 0
    discount: float = 0


class StructuredReceipt(BaseModel):
    restaurant: str = ""
    date: str | None = None
    currency: str | None = None
    items: list[StructuredItem]
    charges: StructuredCharges = StructuredCharges()


agent = Agent(
    name="Receipt Scanner",
    instructions=INSTRUCTIONS,
    model=os.getenv("OPENAI_RECEIPT_MODEL", "gpt-4o"),
    output_type=StructuredReceipt,
)


class OpenAIReceiptScanner:
    """Receipt extraction using OpenAI Agents SDK with a vision model."""

    async def scan(self, image_bytes: bytes, content_type: str, languages: list[str]) -> ReceiptData:
        b64_image = base64.b64encode(image_bytes).decode("utf-8")
        media_type = content_type or "image/jpeg"
        language_names = ", ".join(SUPPORTED_LANGUAGES.get(lang, lang) for lang in languages)

        result = await Runner.run(
            agent,
            input=[
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "input_text",
                            "text": f"Extract items and charges from this receipt. Expected language(s): {language_names}. "
                            f"If the currency is not printed, use {default_currency(languages)}.",
                        },
                        {"type": "input_image", "image_url": f"data:{media_type};base64,{b64_image}"},
                    ],
                }
            ],
        )

        return normalize_structured_receipt(result.final_output.model_dump(), languages)
