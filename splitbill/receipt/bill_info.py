import logging
import re
from datetime import date

from splitbill.receipt.patterns import strip_brackets

logger = logging.getLogger("splitbill")

# Japanese era name -> Gregorian year of era year 0
JAPANESE_ERAS = {"令和": 2018, "平成": 1988}

_ERA_DATE_RE = re.compile(r"(?P<era>令和|平成)\s*(?P<year>\d{1,2}|元)\s*年\s*(?P<month>\d{1,2})\s*月\s*(?P<day>\d{1,2})\s*日")
_KANJI_DATE_RE = re.compile(r"(?<!\d)(?P<year>\d{4})\s*[年년]\s*(?P<month>\d{1,2})\s*[月월]\s*(?P<day>\d{1,2})\s*[日일]?")
_YEAR_FIRST_RE = re.compile(r"(?<!\d)(?P<year>\d{4})[-/.](?P<month>\d{1,2})[-/.](?P<day>\d{1,2})(?!\d)")
_DAY_FIRST_RE = re.compile(r"(?<!\d)(?P<day>\d{1,2})[-/.](?P<month>\d{1,2})[-/.](?P<year>\d{4}|\d{2})(?!\d)")

_DATE_PATTERNS = (_ERA_DATE_RE, _KANJI_DATE_RE, _YEAR_FIRST_RE, _DAY_FIRST_RE)

BUDDHIST_ERA_OFFSET = 543


def is_date_line(line: str) -> bool:
    return any(regex.search(line) for regex in _DATE_PATTERNS)


def _to_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date_match(match: re.Match, buddhist_era: bool = False) -> date | None:
    """Convert a date match to a ``date``; ``None`` when it isn't a real date."""
    parts = match.groupdict()
    year_text = parts["year"]
    if parts.get("era"):
        year = JAPANESE_ERAS[parts["era"]] + (1 if year_text == "元" else int(year_text))
    else:
        year = int(year_text)
        if len(year_text) == 2:
            year += 2000
        elif buddhist_era and year > 2400:
            year -= BUDDHIST_ERA_OFFSET
    month, day = int(parts["month"]), int(parts["day"])

    parsed = _to_date(year, month, day)
    if parsed is None and match.re is _DAY_FIRST_RE:
        # 07/23/2024: month-first when day-first is impossible
        parsed = _to_date(year, day, month)
    return parsed


def parse_date(value: str, buddhist_era: bool = False) -> str | None:
    """First valid date found in ``value`` as ISO-8601, or ``None``."""
    for regex in _DATE_PATTERNS:
        for match in regex.finditer(value):
            parsed = parse_date_match(match, buddhist_era)
            if parsed is not None:
                return parsed.isoformat()
    return None


def extract_date(lines: list[str], buddhist_era: bool = False) -> str | None:
    for line in lines:
        found = parse_date(line, buddhist_era)
        if found:
            return found
        if is_date_line(line):
            logger.debug(f"Discarding unparseable date on line: {line!r}")
    return None


def extract_restaurant_name(lines: list[str]) -> str:
    """First line carrying any letters, brackets removed."""
    return next((strip_brackets(line) for line in lines if any(ch.isalpha() for ch in line)), "")
