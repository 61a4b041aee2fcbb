# domain/pricing.py
from typing import Optional

from photoforge.config.settings import settings

# thousands separator per locale
GROUP_SEPARATORS = {
    "vi": ".",
    "id": ".",
    "de": ".",
    "es": ".",
    "it": ".",
    "en": ",",
    "th": ",",
    "fr": "\u202f",
}


def group_thousands(value: int, locale: str = "") -> str:
    sep = GROUP_SEPARATORS.get((locale or settings.PRICE_LOCALE).split("_")[0].lower(), ",")
    return f"{value:,}".replace(",", sep)


def currency_symbol(currency: Optional[str] = None) -> str:
    return settings.CURRENCY_SYMBOL if currency is None else currency


def format_price(value: int, locale: str = "", currency: Optional[str] = None) -> str:
    """123456 -> "123.456đ" with the default (Vietnamese) settings."""
    return f"{group_thousands(value, locale)}{currency_symbol(currency)}"


def ellipsis(text: str, max_chars: int) -> str:
    if max_chars <= 0 or len(text) <= max_chars:
        return text
    return text[:max_chars].rstrip() + "..."
