from typing import Protocol

from PIL import Image
from pydantic import BaseModel, Field


class LineItem(BaseModel):
    name: str
    price: float  # line total: per-unit price * quantity
    quantity: int = 1

    @property
    def unit_price(self) -> float:
        return round(self.price / self.quantity, 2)


class Charge(BaseModel):
    id: str  # "tax" | "service" | "discount" | free-form
    name: str
    amount: float = 0.0


class BillInfo(BaseModel):
    restaurant_name: str = ""
    date: str | None = None  # ISO-8601 (YYYY-MM-DD)
    currency: str = "USD"


class ReceiptData(BaseModel):
    items: list[LineItem] = Field(default_factory=list)
    bill_info: BillInfo = Field(default_factory=BillInfo)
    charges: list[Charge] = Field(default_factory=list)

    def charge(self, charge_id: str) -> Charge | None:
        return next((c for c in self.charges if c.id == charge_id), None)


class RecognizedText(BaseModel):
    text: str
    confidence: float  # 0-100
    variant: str = "original"


class TextRecognizer(Protocol):
    async def recognize(self, image: Image.Image, languages: list[str]) -> RecognizedText: ...


class ReceiptScanner(Protocol):
    async def scan(self, image_bytes: bytes, content_type: str, languages: list[str]) -> ReceiptData: ...
