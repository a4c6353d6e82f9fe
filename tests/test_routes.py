import asyncio

import pytest

from splitbill.receipt.base import BillInfo, Charge, LineItem, ReceiptData
from splitbill.receipt.errors import ImageError, NoItemsDetected, NoTextRecognized, RecognitionError
from splitbill.routes import receipts

PNG = b"\x89PNG\r\n\x1a\nfake"


class FakeScanner:
    def __init__(self, result=None, error=None, delay=0):
        self.result = result
        self.error = error
        self.delay = delay
        self.calls = []

    async def scan(self, image_bytes, content_type, languages):
        self.calls.append((image_bytes, content_type, languages))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.result


@pytest.fixture
def receipt():
    return ReceiptData(
        items=[LineItem(name="Ramen", price=1700, quantity=2)],
        bill_info=BillInfo(restaurant_name="Ichiban", date="2024-03-15", currency="JPY"),
        charges=[Charge(id="tax", name="消費税", amount=170), Charge(id="service", name="サービス料", amount=0)],
    )


@pytest.fixture
def use_scanner(monkeypatch):
    def install(scanner):
        monkeypatch.setattr(receipts, "get_receipt_scanner", lambda: scanner)
        return scanner

    return install


def _upload(client, content=PNG, content_type="image/png", params=None):
    return client.post(
        "/api/receipts/scan",
        files={"file": ("receipt.png", content, content_type)},
        params=params or {},
    )


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_languages(client):
    resp = client.get("/api/receipts/languages")

    codes = [lang["code"] for lang in resp.json()["languages"]]
    assert resp.status_code == 200
    assert "eng" in codes
    assert "tha" in codes
    assert "chi_tra" in codes


class TestParse:
    def test_parse_text(self, client, sample_receipt_text):
        resp = client.post("/api/receipts/parse", json={"text": sample_receipt_text})

        assert resp.status_code == 200
        body = resp.json()
        assert body["items"][0] == {"name": "Chicken Rice", "price": pytest.approx(31.8), "quantity": 2}
        assert body["billInfo"] == {"restaurantName": "Golden Spoon Restaurant", "date": "2024-03-15", "currency": "USD"}
        assert {c["id"] for c in body["charges"]} == {"tax", "service"}

    def test_parse_with_language_hints(self, client):
        resp = client.post("/api/receipts/parse", json={"text": "醤油ラーメン 850円", "languages": ["jpn"]})

        assert resp.status_code == 200
        assert resp.json()["billInfo"]["currency"] == "JPY"

    def test_no_items(self, client):
        resp = client.post("/api/receipts/parse", json={"text": "Total: $50.00"})

        assert resp.status_code == 422
        assert resp.json()["detail"]["code"] == "no_items_detected"

    def test_blank_text(self, client):
        resp = client.post("/api/receipts/parse", json={"text": "   "})

        assert resp.status_code == 422
        assert resp.json()["detail"]["code"] == "no_text_recognized"


class TestScan:
    def test_scan_success(self, client, use_scanner, receipt):
        scanner = use_scanner(FakeScanner(result=receipt))

        resp = _upload(client, params={"languages": ["jpn", "eng"]})

        assert resp.status_code == 200
        body = resp.json()
        assert body["items"] == [{"name": "Ramen", "price": 1700, "quantity": 2}]
        assert body["billInfo"]["currency"] == "JPY"
        assert scanner.calls == [(PNG, "image/png", ["jpn", "eng"])]

    def test_default_language_is_english(self, client, use_scanner, receipt):
        scanner = use_scanner(FakeScanner(result=receipt))
        _upload(client)
        assert scanner.calls[0][2] == ["eng"]

    def test_unsupported_content_type(self, client, use_scanner, receipt):
        use_scanner(FakeScanner(result=receipt))
        resp = _upload(client, content_type="application/pdf")
        assert resp.status_code == 400

    def test_empty_file(self, client, use_scanner, receipt):
        use_scanner(FakeScanner(result=receipt))
        resp = _upload(client, content=b"")
        assert resp.status_code == 400

    def test_file_too_large(self, client, use_scanner, receipt, monkeypatch):
        use_scanner(FakeScanner(result=receipt))
        monkeypatch.setattr(receipts, "MAX_FILE_SIZE", 4)
        resp = _upload(client)
        assert resp.status_code == 400

    @pytest.mark.parametrize("error, status, code", [
        (NoTextRecognized(), 422, "no_text_recognized"),
        (NoItemsDetected(), 422, "no_items_detected"),
        (ImageError("Unsupported or corrupt image"), 400, "invalid_image"),
        (RecognitionError("Tesseract OCR failed"), 502, "recognition_failed"),
    ])
    def test_receipt_errors(self, client, use_scanner, error, status, code):
        use_scanner(FakeScanner(error=error))

        resp = _upload(client)

        assert resp.status_code == status
        assert resp.json()["detail"]["code"] == code

    def test_unexpected_error(self, client, use_scanner):
        use_scanner(FakeScanner(error=KeyError("items")))
        assert _upload(client).status_code == 502

    def test_provider_not_configured(self, client, monkeypatch):
        def broken():
            raise ValueError("RECEIPT_WEBHOOK_URL is not configured")

        monkeypatch.setattr(receipts, "get_receipt_scanner", broken)
        assert _upload(client).status_code == 503

    def test_timeout(self, client, use_scanner, receipt, monkeypatch):
        monkeypatch.setenv("RECEIPT_SCAN_TIMEOUT", "0.05")
        use_scanner(FakeScanner(result=receipt, delay=1))
        assert _upload(client).status_code == 504
