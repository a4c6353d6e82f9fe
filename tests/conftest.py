import os

os.environ.setdefault("RATELIMIT_ENABLED", "0")
os.environ.setdefault("RECEIPT_PROVIDER", "tesseract")

import pytest
from fastapi.testclient import TestClient

from splitbill.main import app


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def sample_receipt_text():
    return "\n".join([
        "Golden Spoon Restaurant",
        "123 Orchard Road",
        "Date: 15/03/2024",
        "Table: 12",
        "================",
        "2 x Chicken Rice $15.90",
        "Iced Lemon Tea $3.50",
        "Laksa.......$9.80",
        "----------------",
        "Subtotal: $45.10",
        "GST 9%: $4.06",
        "Service Charge 10%: $4.51",
        "Total: $53.67",
        "Thank you for dining with us!",
    ])
