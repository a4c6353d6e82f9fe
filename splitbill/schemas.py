from pydantic import BaseModel, Field


# --- Receipts ---

class ParseReceiptIn(BaseModel):
    text: str
    languages: list[str] = Field(default_factory=lambda: ["eng"])
