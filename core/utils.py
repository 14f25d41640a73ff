# core/utils.py

from decimal import Decimal, ROUND_HALF_UP

from .models import DEFAULT_LANGUAGE


def get_translation(values, language=DEFAULT_LANGUAGE):
    """
    Picks the text for `language` from a per-locale dict such as
    {"de": "Endreinigung", "en": "Final cleaning"}, falling back to German.
    """
    if not values:
        return ''
    if isinstance(values, str):
        return values
    return values.get(language) or values.get(DEFAULT_LANGUAGE) or ''


def format_currency(value):
    """Formats an amount the German way: 1234.5 -> '1.234,50 €'."""
    amount = Decimal(value or 0).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    formatted = f"{amount:,.2f}".replace(',', 'X').replace('.', ',').replace('X', '.')
    return f"{formatted} €"


def format_date(value):
    """dd.mm.yyyy, or an empty string for missing dates."""
    return value.strftime('%d.%m.%Y') if value else ''
