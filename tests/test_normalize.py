import pytest

from splitbill.receipt.errors import NoItemsDetected, RecognitionError
from splitbill.receipt.normalize import load_json_payload, normalize_structured_receipt


def test_list_payload_uses_first_object():
    payload = [{
        "restaurant": " Baan Suan ",
        "date": "2024-03-15T00:00:00Z",
        "items": [{"name": "Pad Thai", "price": "240.00", "quantity": 2}],
        "charges": {"tax": "16.8", "service_charge": 24, "discount": 10},
    }]
    result = normalize_structured_receipt(payload, ["tha"])

    assert result.items[0].name == "Pad Thai"
    assert result.items[0].price == pytest.approx(240.0)
    assert result.items[0].quantity == 2
    assert result.items[0].unit_price == pytest.approx(120.0)
    assert result.bill_info.restaurant_name == "Baan Suan"
    assert result.bill_info.date == "2024-03-15"
    assert result.bill_info.currency == "THB"
    assert result.charge("tax").amount == pytest.approx(16.8)
    assert result.charge("tax").name == "ภาษีมูลค่าเพิ่ม"
    assert result.charge("service").amount == pytest.approx(24.0)
    assert result.charge("discount").amount == pytest.approx(-10.0)


def test_discount_is_negative_even_when_given_negative():
    payload = {"items": [{"name": "Soup", "price": 5}], "charges": {"discount": -2.5}}
    assert normalize_structured_receipt(payload).charge("discount").amount == pytest.approx(-2.5)


def test_missing_charges_default_to_zero():
    result = normalize_structured_receipt({"items": [{"name": "Soup", "price": 5}]})

    assert [c.id for c in result.charges] == ["tax", "service"]
    assert all(c.amount == 0 for c in result.charges)
    assert result.bill_info.currency == "USD"
    assert result.bill_info.date is None


def test_service_key_and_restaurant_name_aliases():
    payload = {
        "restaurantName": "Cafe Uno",
        "currency": "sgd",
        "items": [{"name": "Latte", "price": 6}],
        "charges": {"service": 0.6},
    }
    result = normalize_structured_receipt(payload)

    assert result.bill_info.restaurant_name == "Cafe Uno"
    assert result.bill_info.currency == "SGD"
    assert result.charge("service").amount == pytest.approx(0.6)


def test_zero_discount_is_not_a_charge():
    payload = {"items": [{"name": "Soup", "price": 5}], "charges": {"tax": 0.4, "discount": 0}}
    assert normalize_structured_receipt(payload).charge("discount") is None


def test_invalid_items_are_dropped():
    payload = {"items": [
        {"name": "", "price": 3},
        "junk",
        {"name": "A", "price": 4},
        {"name": "Soup", "price": None},
        {"name": "Tea", "price": "n/a"},
        {"name": "Water", "price": 0},
        {"name": "Wine", "price": 5000},
        {"name": "Total", "price": 12},
        {"name": "Noodles", "price": "8.50", "quantity": "two"},
    ]}
    result = normalize_structured_receipt(payload)

    assert [(item.name, item.price, item.quantity) for item in result.items] == [("Noodles", 8.5, 1)]
    assert all(0 < item.price < 1000 for item in result.items)


def test_price_ceiling_follows_locale():
    payload = {"items": [{"name": "Wagyu", "price": 5000}, {"name": "Sake", "price": 150000}]}
    result = normalize_structured_receipt(payload, ["jpn"])
    assert [item.name for item in result.items] == ["Wagyu"]


def test_only_invalid_items_raises():
    with pytest.raises(NoItemsDetected):
        normalize_structured_receipt({"items": [{"name": "Soup", "price": None}, {"name": "A", "price": 3}]})


def test_day_first_date_string():
    payload = {"date": "15/03/2024", "items": [{"name": "Tea", "price": 2}]}
    assert normalize_structured_receipt(payload).bill_info.date == "2024-03-15"


def test_no_items_raises():
    with pytest.raises(NoItemsDetected):
        normalize_structured_receipt({"items": []})


@pytest.mark.parametrize("payload", [None, "text", [], 42])
def test_non_object_payload_raises(payload):
    with pytest.raises(RecognitionError):
        normalize_structured_receipt(payload)


class TestLoadJsonPayload:
    def test_plain_json(self):
        assert load_json_payload('{"items": []}') == {"items": []}

    def test_json_wrapped_in_prose(self):
        text = 'Here is the receipt:\n```json\n{"restaurant": "Uno", "items": []}\n```\nDone.'
        assert load_json_payload(text) == {"restaurant": "Uno", "items": []}

    def test_no_json_raises(self):
        with pytest.raises(RecognitionError):
            load_json_payload("sorry, I could not read that")

    def test_broken_json_raises(self):
        with pytest.raises(RecognitionError):
            load_json_payload("result: {items: [}")
