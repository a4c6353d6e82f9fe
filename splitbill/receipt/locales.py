"""Per-language vocabulary for receipt parsing.

Each language hint (the same codes the OCR engine uses for its language
packs) maps to a ``Locale`` holding the words and symbols that show up on
receipts printed in that language. ``resolve_locale`` merges the hinted
locales into one compiled ``ReceiptLocale``: vocabulary is the union of all
hinted languages (English is always included, receipts mix scripts freely),
while currency, labels and price ceiling come from the primary locale.
"""

import re
from dataclasses import dataclass
from functools import lru_cache

MAX_ITEM_PRICE = 1000

SUPPORTED_LANGUAGES: dict[str, str] = {
    "eng": "English",
    "chi_sim": "Chinese (Simplified)",
    "chi_tra": "Chinese (Traditional)",
    "jpn": "Japanese",
    "kor": "Korean",
    "tha": "Thai",
    "vie": "Vietnamese",
    "fra": "French",
    "spa": "Spanish",
    "deu": "German",
    "ita": "Italian",
}

# Picked as primary ahead of any other hint, in this order
PRIMARY_PRIORITY = ("tha", "jpn", "kor", "chi_sim", "chi_tra")

DEFAULT_LANGUAGE = "eng"


@dataclass(frozen=True)
class Locale:
    code: str
    currency: str
    currency_symbols: tuple[str, ...]
    tax_words: tuple[str, ...]
    service_words: tuple[str, ...]
    total_words: tuple[str, ...]
    unit_words: tuple[str, ...] = ()
    marker_words: tuple[str, ...] = ()
    tax_label: str = "Tax"
    service_label: str = "Service Charge"
    max_item_price: float = MAX_ITEM_PRICE
    buddhist_era: bool = False


LOCALES: dict[str, Locale] = {
    "eng": Locale(
        code="eng",
        currency="USD",
        currency_symbols=(r"S\$", r"\$", "£", "€", "USD", "EUR", "GBP", "SGD"),
        tax_words=("tax", "gst", "vat"),
        service_words=(r"service\s*charge", "service", r"svc\s*chg", "gratuity", "tips?"),
        total_words=(r"sub\s*-?\s*total", "total", r"amount\s*due", r"balance\s*due"),
        unit_words=("pcs", "pc", "pieces", "piece"),
        marker_words=(
            "food", "foods", "beverages?", "drinks?", "kitchen", "bar", "items?", "orders?",
            "qty", "description", "amount", "price", "appetizers?", "starters?", "mains?",
            "entrees?", "entrées?", "desserts?", "sides?", "breakfast", "lunch", "dinner",
            "specials?", "combos?",
        ),
    ),
    "tha": Locale(
        code="tha",
        currency="THB",
        currency_symbols=("฿", "THB", "บาท"),
        tax_words=("ภาษี", "vat"),
        service_words=("ค่าบริการ", "เซอร์วิสชาร์จ"),
        total_words=("ยอดรวม", "รวม", "ทั้งหมด"),
        unit_words=("ชิ้น", "จาน", "ที่"),
        marker_words=("รายการ",),
        tax_label="ภาษีมูลค่าเพิ่ม",
        service_label="ค่าบริการ",
        max_item_price=100_000,
        buddhist_era=True,
    ),
    "jpn": Locale(
        code="jpn",
        currency="JPY",
        currency_symbols=("¥", "￥", "円", "JPY"),
        tax_words=("消費税", "付加価値税", "税"),
        service_words=("サ[ー―ｰ]ビス料", "サ料", "奉仕料", "チップ"),
        total_words=("合計", "小計", "総額", "会計"),
        unit_words=("個", "点", "セット", "set"),
        marker_words=("品名", "数量", "金額", "料理", "ドリンク"),
        tax_label="消費税",
        service_label="サービス料",
        max_item_price=100_000,
    ),
    "kor": Locale(
        code="kor",
        currency="KRW",
        currency_symbols=("₩", "원", "KRW"),
        tax_words=("부가가치세", "부가세", "세금"),
        service_words=("봉사료", r"서비스\s*요금"),
        total_words=("합계", "소계", "총액"),
        unit_words=("개", "인분"),
        marker_words=("품목", "메뉴", "수량"),
        tax_label="부가세",
        service_label="봉사료",
        max_item_price=1_000_000,
    ),
    "chi_sim": Locale(
        code="chi_sim",
        currency="CNY",
        currency_symbols=("¥", "￥", "元", "CNY", "RMB"),
        tax_words=("增值税", "税"),
        service_words=("服务费",),
        total_words=("合计", "小计", "总计"),
        unit_words=("份", "个"),
        marker_words=("菜品", "品名", "数量"),
        tax_label="税",
        service_label="服务费",
        max_item_price=10_000,
    ),
    "chi_tra": Locale(
        code="chi_tra",
        currency="CNY",
        currency_symbols=("¥", "￥", "元", "CNY"),
        tax_words=("營業稅", "稅"),
        service_words=("服務費",),
        total_words=("合計", "小計", "總計"),
        unit_words=("份", "個"),
        marker_words=("品名", "數量"),
        tax_label="稅",
        service_label="服務費",
        max_item_price=10_000,
    ),
    "vie": Locale(
        code="vie",
        currency="USD",
        currency_symbols=("₫", "VND", "đ"),
        tax_words=("thuế", "vat"),
        service_words=(r"phí\s*dịch\s*vụ", r"phục\s*vụ"),
        total_words=(r"tổng\s*cộng", r"thành\s*tiền", "tổng"),
        unit_words=("phần", "ly"),
        tax_label="Thuế",
        service_label="Phí dịch vụ",
        max_item_price=10_000_000,
    ),
    "fra": Locale(
        code="fra",
        currency="USD",
        currency_symbols=("€", "EUR"),
        tax_words=("tva", "taxe"),
        service_words=("service", "pourboire"),
        total_words=(r"sous\s*-?\s*total", "total", "montant"),
        marker_words=("entrées?", "plats?", "boissons?"),
        tax_label="TVA",
        service_label="Service",
    ),
    "spa": Locale(
        code="spa",
        currency="USD",
        currency_symbols=("€", "EUR"),
        tax_words=("iva", "impuesto"),
        service_words=("servicio", "propina"),
        total_words=("subtotal", "total", "importe"),
        marker_words=("bebidas?", "platos?", "postres?"),
        tax_label="IVA",
        service_label="Servicio",
    ),
    "deu": Locale(
        code="deu",
        currency="USD",
        currency_symbols=("€", "EUR"),
        tax_words=("mwst", "ust", "steuer"),
        service_words=("bedienung", "trinkgeld"),
        total_words=("zwischensumme", "summe", "gesamt", "total"),
        unit_words=("stk", "stück"),
        marker_words=("speisen", "getränke"),
        tax_label="MwSt.",
        service_label="Bedienung",
    ),
    "ita": Locale(
        code="ita",
        currency="USD",
        currency_symbols=("€", "EUR"),
        tax_words=("iva",),
        service_words=("servizio", "coperto", "mancia"),
        total_words=("subtotale", "totale"),
        marker_words=("bevande", "antipasti", "primi", "secondi", "dolci"),
        tax_label="IVA",
        service_label="Servizio",
    ),
}


def _alternation(words) -> str:
    # Longest first so "service charge" wins over "service"
    unique = sorted(set(words), key=len, reverse=True)
    return "|".join(unique)


def _vocabulary(words) -> re.Pattern:
    """Match any of ``words`` as a whole token (Latin letters must not touch it)."""
    return re.compile(rf"(?<![a-z])(?:{_alternation(words)})(?![a-z])", re.IGNORECASE)


@dataclass(frozen=True)
class ReceiptLocale:
    """Vocabulary of all hinted locales merged, plus the primary locale's defaults."""

    primary: Locale
    codes: tuple[str, ...]
    currency_pattern: str
    unit_pattern: str
    marker_pattern: str
    tax_re: re.Pattern
    service_re: re.Pattern
    total_re: re.Pattern

    @property
    def currency(self) -> str:
        return self.primary.currency

    @property
    def max_item_price(self) -> float:
        return self.primary.max_item_price

    @property
    def buddhist_era(self) -> bool:
        return any(LOCALES[code].buddhist_era for code in self.codes)


def normalize_languages(languages) -> tuple[str, ...]:
    """Known hints in the caller's order, deduplicated; ``("eng",)`` when none are known."""
    seen: list[str] = []
    for lang in languages or ():
        code = str(lang).strip().lower()
        if code in LOCALES and code not in seen:
            seen.append(code)
    return tuple(seen) or (DEFAULT_LANGUAGE,)


def primary_language(languages) -> str:
    codes = normalize_languages(languages)
    for code in PRIMARY_PRIORITY:
        if code in codes:
            return code
    return next((c for c in codes if c != DEFAULT_LANGUAGE), DEFAULT_LANGUAGE)


def default_currency(languages) -> str:
    return LOCALES[primary_language(languages)].currency


def resolve_locale(languages) -> ReceiptLocale:
    return _resolve(normalize_languages(languages))


@lru_cache(maxsize=64)
def _resolve(codes: tuple[str, ...]) -> ReceiptLocale:
    primary = LOCALES[primary_language(codes)]
    merged = [LOCALES[DEFAULT_LANGUAGE]] + [LOCALES[c] for c in codes if c != DEFAULT_LANGUAGE]

    def collect(attr: str) -> list[str]:
        return [word for loc in merged for word in getattr(loc, attr)]

    return ReceiptLocale(
        primary=primary,
        codes=codes,
        currency_pattern=_alternation(collect("currency_symbols")),
        unit_pattern=_alternation(collect("unit_words")),
        marker_pattern=_alternation(collect("marker_words")),
        tax_re=_vocabulary(collect("tax_words")),
        service_re=_vocabulary(collect("service_words")),
        total_re=_vocabulary(collect("total_words")),
    )
