"""Field normalization utilities for prices, discounts, ratings and URLs.

Everything here is a pure function: raw text in, canonical value (or None)
out. A missing value is always None, never zero.
"""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import List, Optional, Tuple, Union
from urllib.parse import urljoin

Number = Union[int, float, Decimal]

# "₹12,499", "Rs. 1,299.50", "INR 999", "$12.99"
CURRENCY_TOKEN_RE = re.compile(
    r"(?:₹|\bRs\.?|\bINR|\$|€|£)\s*([0-9][0-9,]*(?:\.[0-9]+)?)"
)
BARE_NUMBER_RE = re.compile(r"[0-9][0-9,]*(?:\.[0-9]+)?")
PERCENT_RE = re.compile(r"([0-9]+(?:\.[0-9]+)?)\s*(?:%|off\b)", re.IGNORECASE)
RATING_RE = re.compile(r"[0-9]+(?:\.[0-9]+)?")
REVIEW_COUNT_RE = re.compile(r"([0-9][0-9,]*(?:\.[0-9]+)?)\s*([kK])?")
WHITESPACE_RE = re.compile(r"\s+")

BRAND_PATTERNS = [
    re.compile(r"^([A-Z][a-zA-Z\s&]+?)\s+"),
    re.compile(r"^([A-Z][a-zA-Z\s&]+?)\s*[0-9]"),
    re.compile(r"^([A-Z][a-zA-Z\s&]+?)\s*[A-Z]"),
]


MAX_RATING = 5


def _to_decimal(digits: str) -> Optional[Decimal]:
    try:
        return Decimal(digits.replace(",", ""))
    except InvalidOperation:
        return None


def _is_number(value) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def parse_currency(
    value: Union[str, Number, None], require_symbol: bool = True
) -> Optional[Decimal]:
    """Parse the first currency amount out of a text fragment.

    Handles formats such as:
    - "₹12,499" -> 12499
    - "Rs. 1,299.50" -> 1299.50
    - "MRP: ₹2,000 (incl. of all taxes)" -> 2000

    Args:
        value: Raw text, or an already-numeric value which passes through
        require_symbol: When False, a bare number is accepted if no
            currency-prefixed token is present

    Returns:
        Decimal amount, or None when nothing parseable is found
    """
    if value is None:
        return None
    if _is_number(value):
        amount = Decimal(str(value))
        return amount if amount >= 0 else None

    text = str(value)
    match = CURRENCY_TOKEN_RE.search(text)
    if match:
        return _to_decimal(match.group(1))

    if not require_symbol:
        bare = BARE_NUMBER_RE.search(text)
        if bare:
            return _to_decimal(bare.group(0))

    return None


def find_currency_tokens(text: Optional[str]) -> List[Decimal]:
    """Return every currency-prefixed amount in ``text`` in document order."""
    if not text:
        return []
    amounts = []
    for match in CURRENCY_TOKEN_RE.finditer(text):
        amount = _to_decimal(match.group(1))
        if amount is not None:
            amounts.append(amount)
    return amounts


def parse_percentage(value: Union[str, Number, None]) -> Optional[Decimal]:
    """Parse a percentage such as "33%", "33% off" or "Flat 40 OFF".

    The numeral is kept verbatim; no rounding is applied.
    """
    if value is None:
        return None
    if _is_number(value):
        return Decimal(str(value))
    match = PERCENT_RE.search(str(value))
    if not match:
        return None
    return _to_decimal(match.group(1))


def derive_discount(
    selling_price: Optional[Decimal],
    actual_price: Optional[Decimal],
    scraped_percent: Optional[Decimal] = None,
) -> Tuple[Optional[Decimal], Optional[Decimal]]:
    """Compute ``(discount_amount, discount_percent)`` for a product.

    When both prices are present and the actual price exceeds the selling
    price, the amount is their difference and the percent is derived from
    it (rounded half-up to a whole number) unless the page already showed
    one. When either price is absent both values are None.

    Args:
        selling_price: Price the product is offered at
        actual_price: MRP / list price
        scraped_percent: Percentage text already parsed from the page

    Returns:
        Tuple of (discount_amount, discount_percent)
    """
    if selling_price is None or actual_price is None:
        return None, None

    if actual_price > selling_price:
        amount = actual_price - selling_price
        if scraped_percent is not None:
            return amount, scraped_percent
        percent = (amount / actual_price * 100).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
        return amount, percent

    return None, scraped_percent


def parse_rating(value: Union[str, Number, None]) -> Optional[float]:
    """Parse a star rating ("4.3", "4.3 out of 5", "Rated 4 star")."""
    if value is None:
        return None
    if _is_number(value):
        rating = float(value)
    else:
        match = RATING_RE.search(str(value))
        if not match:
            return None
        rating = float(match.group(0))
    if rating < 0 or rating > MAX_RATING:
        return None
    return rating


def parse_review_count(value: Union[str, Number, None]) -> Optional[int]:
    """Parse a review count ("(1,234)", "56 Reviews", "1.2k ratings")."""
    if value is None:
        return None
    if _is_number(value):
        return int(value)
    match = REVIEW_COUNT_RE.search(str(value))
    if not match:
        return None
    count = _to_decimal(match.group(1))
    if count is None:
        return None
    if match.group(2):
        count *= 1000
    return int(count)


def normalize_url(url: Optional[str], base_url: str) -> Optional[str]:
    """Resolve an href found on a page into an absolute URL.

    Args:
        url: Raw href / src attribute value
        base_url: Site origin, e.g. "https://www.croma.com"

    Returns:
        Absolute URL, or None for blank, fragment-only, non-string and
        javascript:/data: links. Absolute URLs are returned unchanged.
    """
    if not url or not isinstance(url, str):
        return None
    url = url.strip()
    if not url or url.startswith("#"):
        return None

    lowered = url.lower()
    if lowered.startswith(("javascript:", "data:")):
        return None
    if url.startswith("//"):
        return f"https:{url}"
    if lowered.startswith(("http://", "https://")):
        return url
    if url.startswith("/"):
        return base_url.rstrip("/") + url
    return urljoin(base_url.rstrip("/") + "/", url)


def clean_text(value: Optional[str]) -> Optional[str]:
    """Collapse whitespace; blank text becomes None."""
    if value is None:
        return None
    cleaned = WHITESPACE_RE.sub(" ", str(value)).strip()
    return cleaned or None


def dedupe_repeated_words(text: Optional[str]) -> Optional[str]:
    """Drop repeated words (case-insensitive), keeping first occurrences.

    Some listing cards render the product title twice inside the same
    element ("Samsung Galaxy S24 Samsung Galaxy S24").
    """
    cleaned = clean_text(text)
    if not cleaned:
        return cleaned
    seen = set()
    words = []
    for word in cleaned.split(" "):
        key = word.lower()
        if key in seen:
            continue
        seen.add(key)
        words.append(word)
    return " ".join(words)


def guess_brand(product_name: Optional[str]) -> Optional[str]:
    """Guess the brand from the leading capitalized word(s) of a name."""
    if not product_name:
        return None
    for pattern in BRAND_PATTERNS:
        match = pattern.match(product_name)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return None


def format_price(amount: Optional[Decimal], symbol: str = "₹") -> Optional[str]:
    """Format an amount with Indian digit grouping.

    Examples:
        1499 -> "₹1,499"
        1234567 -> "₹12,34,567"
        1299.5 -> "₹1,299.50"
    """
    if amount is None:
        return None

    amount = Decimal(amount)
    sign = "-" if amount < 0 else ""
    amount = abs(amount)

    if amount == amount.to_integral_value():
        integer_part, fraction = str(int(amount)), ""
    else:
        quantized = amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        integer_part, fraction = f"{quantized:f}".split(".")
        fraction = "." + fraction

    # Last three digits, then groups of two
    if len(integer_part) > 3:
        head, tail = integer_part[:-3], integer_part[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        integer_part = ",".join(groups + [tail])

    return f"{sign}{symbol}{integer_part}{fraction}"


def format_percent(percent: Optional[Decimal]) -> Optional[str]:
    """Format a percentage as "33%" (decimals kept when present)."""
    if percent is None:
        return None
    percent = Decimal(percent)
    if percent == percent.to_integral_value():
        return f"{int(percent)}%"
    return f"{percent.normalize():f}%"
