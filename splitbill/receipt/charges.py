import re

from splitbill.receipt.base import Charge
from splitbill.receipt.locales import ReceiptLocale
from splitbill.receipt.patterns import amounts

# Lines quoting an amount that merely includes/excludes tax are not charges
_NOT_A_CHARGE_RE = re.compile(r"(?<![a-z])(?:incl|inclusive|including|excl|exclusive|excluding|inkl)(?![a-z])|税込|税抜|内税|รวมภาษี", re.IGNORECASE)


def seed_charges(locale: ReceiptLocale) -> list[Charge]:
    return [
        Charge(id="tax", name=locale.primary.tax_label, amount=0),
        Charge(id="service", name=locale.primary.service_label, amount=0),
    ]


def extract_charges(lines: list[str], locale: ReceiptLocale) -> list[Charge]:
    """Tax and service charge amounts; the last matching line wins for each."""
    tax, service = seed_charges(locale)
    for line in lines:
        if _NOT_A_CHARGE_RE.search(line):
            continue
        found = amounts(line)
        if not found:
            continue
        if locale.tax_re.search(line):
            tax.amount = found[-1]
        elif locale.service_re.search(line):
            service.amount = found[-1]
    return [tax, service]
