"""Normalization of structured receipt responses.

Vision models and automation webhooks answer with JSON that is close to,
but not exactly, ``ReceiptData``. This module validates that JSON and
applies the same conventions as the text extractor: prices are line
totals, items with an invalid name or price are dropped, tax and service
charges are always present, and a reported discount is negative.
"""

import json
import logging
import re
from datetime import datetime
from typing import Any

from splitbill.receipt.base import BillInfo, Charge, LineItem, ReceiptData
from splitbill.receipt.bill_info import parse_date
from splitbill.receipt.errors import NoItemsDetected, RecognitionError
from splitbill.receipt.extractor import is_valid_item_name
from splitbill.receipt.locales import default_currency, resolve_locale

logger = logging.getLogger("splitbill")

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def _number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.replace(",", "").strip())
        except ValueError:
            return None
    return None


def _quantity(value: Any) -> int:
    try:
        return max(1, int(value))
    except (TypeError, ValueError):
        return 1


def _normalize_date(value: Any) -> str | None:
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return parse_date(value)


def load_json_payload(text: str) -> Any:
    """Parse a response body that may wrap its JSON object in prose or code fences."""
    try:
        return json.loads(text)
    except ValueError:
        pass
    match = _JSON_OBJECT_RE.search(text or "")
    if not match:
        raise RecognitionError("Response did not contain a JSON object")
    try:
        return json.loads(match.group(0))
    except ValueError as e:
        raise RecognitionError(f"Invalid JSON in response: {e}") from e


def normalize_structured_receipt(payload: Any, languages=("eng",)) -> ReceiptData:
    data = payload[0] if isinstance(payload, list) and payload else payload
    if not isinstance(data, dict):
        raise RecognitionError("Invalid response format")

    locale = resolve_locale(languages)
    items = []
    for raw in data.get("items") or []:
        if not isinstance(raw, dict):
            continue
        name = str(raw.get("name") or "").strip()
        price = _number(raw.get("price"))
        if not is_valid_item_name(name) or price is None or not 0 < price < locale.max_item_price:
            logger.debug(f"Dropping structured item {name!r} priced {raw.get('price')!r}")
            continue
        items.append(LineItem(name=name, price=round(price, 2), quantity=_quantity(raw.get("quantity"))))
    if not items:
        raise NoItemsDetected()

    raw_charges = data.get("charges") or {}
    if not isinstance(raw_charges, dict):
        raw_charges = {}
    tax = _number(raw_charges.get("tax"))
    service = _number(raw_charges.get("service_charge", raw_charges.get("service")))
    discount = _number(raw_charges.get("discount"))

    charges = [
        Charge(id="tax", name=locale.primary.tax_label, amount=round(tax, 2) if tax is not None else 0),
        Charge(id="service", name=locale.primary.service_label, amount=round(service, 2) if service is not None else 0),
    ]
    if discount:
        charges.append(Charge(id="discount", name="Discount", amount=-abs(round(discount, 2))))

    result = ReceiptData(
        items=items,
        bill_info=BillInfo(
            restaurant_name=str(data.get("restaurant") or data.get("restaurantName") or "").strip(),
            date=_normalize_date(data.get("date")),
            currency=str(data.get("currency") or default_currency(languages)).upper(),
        ),
        charges=charges,
    )
    logger.info("Structured receipt normalized", extra={"extra_data": {"items_count": len(items)}})
    return result
