from splitbill.receipt.base import ReceiptData


def serialize_receipt(receipt: ReceiptData) -> dict:
    return {
        "items": [
            {"name": item.name, "price": item.price, "quantity": item.quantity}
            for item in receipt.items
        ],
        "billInfo": {
            "restaurantName": receipt.bill_info.restaurant_name,
            "date": receipt.bill_info.date,
            "currency": receipt.bill_info.currency,
        },
        "charges": [
            {"id": charge.id, "name": charge.name, "amount": charge.amount}
            for charge in receipt.charges
        ],
    }
