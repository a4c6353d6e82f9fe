"""Receipt text extraction.

Turns noisy recognized receipt text into ``ReceiptData``. Items come from a
single left-to-right scan over the lines; the scan state is an immutable
``ScanState`` folded over the line sequence, so ``extract_receipt`` keeps no
state between calls and is safe to run concurrently.
"""

import logging
import re
from dataclasses import dataclass, replace
from enum import Enum
from functools import partial, reduce

from splitbill.receipt.base import BillInfo, LineItem, ReceiptData
from splitbill.receipt.bill_info import extract_date, extract_restaurant_name, is_date_line
from splitbill.receipt.charges import extract_charges
from splitbill.receipt.errors import NoItemsDetected
from splitbill.receipt.locales import ReceiptLocale, resolve_locale
from splitbill.receipt.patterns import (
    RESERVED_NAMES,
    ItemMatch,
    LinePatterns,
    compile_patterns,
    has_price,
    is_excluded,
    is_section_marker,
    match_item_patterns,
    strip_brackets,
)

logger = logging.getLogger("splitbill")

# Item scanning stops after this many consecutive lines without an item
MAX_CONSECUTIVE_MISSES = 5
# Lines read without a section marker before every line counts as a candidate
SECTION_SEEK_LIMIT = 5

_LEADING_JUNK_RE = re.compile(r"^[\W_]+")
_TRAILING_JUNK_RE = re.compile(r"(?:[^\w&()'\-]|_)+$")
_WHITESPACE_RE = re.compile(r"\s+")


class Section(Enum):
    HEADER = "header"
    SEEKING_ITEMS = "seeking_items"
    IN_ITEMS = "in_items"
    DONE = "done"


@dataclass(frozen=True)
class ScanContext:
    locale: ReceiptLocale
    patterns: LinePatterns
    max_item_price: float
    max_consecutive_misses: int
    section_seek_limit: int


@dataclass(frozen=True)
class ScanState:
    section: Section = Section.HEADER
    position: int = 0
    restaurant_name: str = ""
    items: tuple[LineItem, ...] = ()
    misses: int = 0


def clean_item_name(name: str) -> str:
    name = _LEADING_JUNK_RE.sub("", name)
    name = _TRAILING_JUNK_RE.sub("", name)
    return _WHITESPACE_RE.sub(" ", name).strip()


def is_valid_item_name(name: str) -> bool:
    if len(name) <= 1:
        return False
    if not any(ch.isalpha() for ch in name):
        return False
    return name.lower() not in RESERVED_NAMES


def _accept(candidate: ItemMatch, ctx: ScanContext, strong_only: bool) -> LineItem | None:
    if strong_only and not candidate.strong:
        return None
    name = clean_item_name(candidate.name)
    if not is_valid_item_name(name):
        return None
    total = round(candidate.price * candidate.quantity, 2)
    if candidate.price <= 0 or total >= ctx.max_item_price:
        return None
    return LineItem(name=name, price=total, quantity=candidate.quantity)


def match_item(line: str, ctx: ScanContext, strong_only: bool = False) -> LineItem | None:
    """First candidate, in pattern priority order, that passes validation."""
    if ctx.locale.total_re.search(line):
        return None
    for candidate in match_item_patterns(line, ctx.patterns):
        item = _accept(candidate, ctx, strong_only)
        if item is not None:
            logger.debug(f"Matched {candidate.pattern.name}: {item.name!r} {item.price} x{item.quantity}")
            return item
    return None


def _continue_name(item: LineItem, line: str) -> LineItem:
    name = _WHITESPACE_RE.sub(" ", f"{item.name} {line}").strip()
    return item.model_copy(update={"name": name})


def _step(ctx: ScanContext, state: ScanState, line: str) -> ScanState:
    state = replace(state, position=state.position + 1)
    if state.section is Section.DONE or is_excluded(line, ctx.patterns):
        return state

    if state.section is Section.HEADER:
        if not is_date_line(line) and not has_price(line, ctx.patterns) and not is_section_marker(line, ctx.patterns):
            return replace(state, section=Section.SEEKING_ITEMS, restaurant_name=strip_brackets(line))
        state = replace(state, section=Section.SEEKING_ITEMS)

    if is_section_marker(line, ctx.patterns):
        return replace(state, section=Section.IN_ITEMS)

    seeking = state.section is Section.SEEKING_ITEMS
    if seeking and not state.items and state.position > ctx.section_seek_limit:
        seeking = False
        state = replace(state, section=Section.IN_ITEMS)

    item = match_item(line, ctx, strong_only=seeking)
    if item is not None:
        return replace(state, section=Section.IN_ITEMS, items=state.items + (item,), misses=0)
    if seeking or not state.items:
        return state

    items = state.items
    if len(line) > 3 and not has_price(line, ctx.patterns) and not ctx.locale.total_re.search(line):
        items = items[:-1] + (_continue_name(items[-1], line),)

    misses = state.misses + 1
    if misses >= ctx.max_consecutive_misses:
        logger.debug(f"No item in {misses} consecutive lines, ending item scan at line {state.position}")
        return replace(state, section=Section.DONE, items=items, misses=misses)
    return replace(state, items=items, misses=misses)


def split_lines(text: str) -> list[str]:
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


def extract_receipt(
    text: str,
    languages=("eng",),
    *,
    max_item_price: float | None = None,
    max_consecutive_misses: int = MAX_CONSECUTIVE_MISSES,
    section_seek_limit: int = SECTION_SEEK_LIMIT,
) -> ReceiptData:
    """Extract line items, charges and bill info from recognized receipt text.

    ``languages`` are OCR language hints (``"eng"``, ``"jpn"``, ``"tha"``...)
    selecting vocabulary and the default currency. Raises ``NoItemsDetected``
    when no line qualifies as an item; everything else about the text is
    best-effort and never raises.
    """
    locale = resolve_locale(languages)
    ctx = ScanContext(
        locale=locale,
        patterns=compile_patterns(locale),
        max_item_price=max_item_price if max_item_price is not None else locale.max_item_price,
        max_consecutive_misses=max_consecutive_misses,
        section_seek_limit=section_seek_limit,
    )
    lines = split_lines(text)
    logger.debug(f"Parsing {len(lines)} lines with languages {list(locale.codes)}")

    state = reduce(partial(_step, ctx), lines, ScanState())
    if not state.items:
        logger.warning("No items found in receipt", extra={"extra_data": {"lines": len(lines)}})
        raise NoItemsDetected()

    result = ReceiptData(
        items=list(state.items),
        bill_info=BillInfo(
            restaurant_name=state.restaurant_name or extract_restaurant_name(lines),
            date=extract_date(lines, buddhist_era=locale.buddhist_era),
            currency=locale.currency,
        ),
        charges=extract_charges(lines, locale),
    )
    logger.info(
        "Receipt text parsed",
        extra={"extra_data": {"items_count": len(result.items), "languages": list(locale.codes)}},
    )
    return result
