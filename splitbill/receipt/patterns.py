"""Line patterns for receipt text.

The four item layouts are tried in a fixed order (``ItemPattern`` order is
the tie-break); the first layout whose match also survives validation wins.
"""

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

from splitbill.receipt.locales import ReceiptLocale

# "1,234.50", "1.234,50", "1,200", "15.90", "12,50", "800"
AMOUNT = r"\d{1,3}(?:[,.]\d{3})+(?:[.,]\d{1,2})?(?!\d)|\d+(?:[.,]\d{1,2})?(?!\d)"

# A price token must not start in the middle of another number
_PRICE = rf"(?<![\d.,])(?P<price>{AMOUNT})"

_AMOUNT_RE = re.compile(rf"(?<![\d.,])(?:{AMOUNT})(?!\s*%)")

# Names end on a letter/digit or closing bracket, never on leader dots or a symbol
_NAME = r"(?P<name>.*?[\w)'&])"

RESERVED_NAMES = frozenset({"total", "subtotal", "no", "number", "#", "table", "pax", "person", "guest"})

# Reading a candidate that needs a decimal part or a currency symbol before
# an item section has been found
_STRONG_PRICE_RE = re.compile(r"[.,]\d{1,2}$")

_EXCLUDE_PATTERNS = [
    re.compile(r"(?<![a-z])(?:visa|master\s*card|amex|credit\s*card|debit\s*card|nets|paynow|e-?wallet)(?![a-z])", re.IGNORECASE),
    re.compile(r"(?<![a-z])(?:debit|cash|change|balance|payment|paid|tender)\s*(?:[:：$]|\d|$)", re.IGNORECASE),
    re.compile(r"(?<![a-z])(?:table|server|guest|guests|cashier|date|time|pax|covers?)\s*(?:[:：#$]|\d|$)", re.IGNORECASE),
    re.compile(r"(?<![a-z])(?:receipt|invoice|order|bill|check|chk)\s*(?:no\b|number|#)", re.IGNORECASE),
    re.compile(r"(?<![a-z])(?:tel|phone|address|email|fax)(?:\s|:|\.)", re.IGNORECASE),
    re.compile(r"(?<![a-z])(?:thank|welcome|visit|www|http|please\s+come|follow\s+us)", re.IGNORECASE),
    re.compile(r"^(?=.*\d)[\d\s.,:/\-]+$"),  # numbers, dates and times on their own
    re.compile(r"^(?![-=]{3,}$)\s*[-_*~.]+\s*$"),  # separators; dash runs are section markers
]

_SEPARATOR_MARKER_RE = re.compile(r"^[-=]{3,}$")
_BRACKETS_RE = re.compile(r"[（）(){}\[\]]")


class ItemPattern(Enum):
    LEADING_QUANTITY = 1  # "2 x Chicken Rice $15.90"
    TRAILING_QUANTITY = 2  # "Chicken Rice $15.90 x 2"
    LEADERED = 3  # "Chicken Rice.....$15.90"
    PRICE_FIRST = 4  # "$15.90 Chicken Rice"


@dataclass(frozen=True)
class ItemMatch:
    pattern: ItemPattern
    name: str
    price: float
    quantity: int
    strong: bool


@dataclass(frozen=True)
class LinePatterns:
    items: tuple[tuple[ItemPattern, re.Pattern], ...]
    exclusions: tuple[re.Pattern, ...]
    marker: re.Pattern
    price_token: re.Pattern
    currency: re.Pattern


def parse_amount(token: str) -> float | None:
    """Parse an amount token with either thousands/decimal convention."""
    digits = re.sub(r"[^\d.,]", "", token)
    if not digits or not digits[0].isdigit():
        return None
    last_dot, last_comma = digits.rfind("."), digits.rfind(",")
    if last_dot >= 0 and last_comma >= 0:
        decimal = "." if last_dot > last_comma else ","
        thousands = "," if decimal == "." else "."
        digits = digits.replace(thousands, "").replace(decimal, ".")
    elif last_dot >= 0 or last_comma >= 0:
        sep = "." if last_dot >= 0 else ","
        groups = digits.split(sep)
        if len(groups) > 2 or (len(groups[-1]) == 3 and len(groups[0]) <= 3):
            digits = digits.replace(sep, "")
        else:
            digits = digits.replace(sep, ".")
    try:
        return float(digits)
    except ValueError:
        return None


def amounts(line: str) -> list[float]:
    """All non-percentage amounts on a line, left to right."""
    found = (parse_amount(m.group(0)) for m in _AMOUNT_RE.finditer(line))
    return [value for value in found if value is not None]


def strip_brackets(line: str) -> str:
    return _BRACKETS_RE.sub("", line).strip()


@lru_cache(maxsize=64)
def compile_patterns(locale: ReceiptLocale) -> LinePatterns:
    cur = locale.currency_pattern
    price_tail = rf"(?:(?:{cur})\s?)?{_PRICE}(?:\s?(?:{cur}))?"
    quantity_sep = rf"(?:[x×](?=\s)|[@*]|(?:{locale.unit_pattern})(?![a-z]))" if locale.unit_pattern else r"(?:[x×](?=\s)|[@*])"

    items = (
        (
            ItemPattern.LEADING_QUANTITY,
            rf"^(?P<qty>\d{{1,3}})\s*{quantity_sep}\s*{_NAME}(?:\s*\.{{2,}})?\s*{price_tail}\s*$",
        ),
        (
            ItemPattern.TRAILING_QUANTITY,
            rf"^{_NAME}[ \t]?{price_tail}(?:\s*[x×]\s*(?P<qty>\d{{1,3}}))?\s*$",
        ),
        (
            ItemPattern.LEADERED,
            rf"^{_NAME}\s*(?:\.{{2,}}|\s{{2,}}|\t)[\s.]*{price_tail}\s*$",
        ),
        (
            ItemPattern.PRICE_FIRST,
            rf"^{price_tail}\s+(?P<name>.*\S)\s*$",
        ),
    )

    vocabulary = "|".join(
        regex.pattern for regex in (locale.total_re, locale.tax_re, locale.service_re)
    )
    summary = re.compile(rf"(?:{vocabulary})\s*(?:[:：]|(?:{cur})|\d|$)", re.IGNORECASE)

    return LinePatterns(
        items=tuple((kind, re.compile(regex, re.IGNORECASE)) for kind, regex in items),
        exclusions=(summary, *_EXCLUDE_PATTERNS),
        marker=re.compile(
            rf"^[\W_]*(?:{locale.marker_pattern})(?:[\W_]+(?:{locale.marker_pattern}))*[\W_]*$",
            re.IGNORECASE,
        ),
        price_token=re.compile(rf"(?<![\d.,])\d+(?:[.,]\d+)*"),
        currency=re.compile(cur, re.IGNORECASE),
    )


def is_excluded(line: str, patterns: LinePatterns) -> bool:
    return any(regex.search(line) for regex in patterns.exclusions)


def is_section_marker(line: str, patterns: LinePatterns) -> bool:
    if _SEPARATOR_MARKER_RE.match(line):
        return True
    return not any(ch.isdigit() for ch in line) and bool(patterns.marker.match(line))


def has_price(line: str, patterns: LinePatterns) -> bool:
    return bool(patterns.price_token.search(line))


def match_item_patterns(line: str, patterns: LinePatterns):
    """Yield raw candidates for ``line`` in pattern priority order."""
    for kind, regex in patterns.items:
        match = regex.match(line)
        if not match:
            continue
        price = parse_amount(match.group("price"))
        if price is None:
            continue
        qty = match.groupdict().get("qty")
        strong = bool(_STRONG_PRICE_RE.search(match.group("price"))) or bool(patterns.currency.search(line))
        yield ItemMatch(
            pattern=kind,
            name=match.group("name"),
            price=price,
            quantity=max(1, int(qty)) if qty else 1,
            strong=strong,
        )
