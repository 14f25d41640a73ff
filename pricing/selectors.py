# pricing/selectors.py
# version: 7.0.0
# REFACTOR: Hotel search and agency contract pricing removed. Selectors now load the pricing
#           configuration of the apartment (period, fees, discounts, payment settings).

import logging
from datetime import timedelta

from .models import PricingPeriod, Fee, Discount, PaymentSettings
from .services import PricingError, PricingSnapshot, NO_PRICING_MESSAGE, to_cents

logger = logging.getLogger(__name__)

DEFAULT_MINIMUM_STAY = 4


def get_pricing_period(day):
    """
    Returns the pricing period whose range contains ``day`` (both ends inclusive).
    """
    periods = list(PricingPeriod.objects.filter(start_date__lte=day, end_date__gte=day)[:2])
    if not periods:
        raise PricingError(NO_PRICING_MESSAGE)
    if len(periods) > 1:
        logger.error("Overlapping pricing periods for %s: %s", day, [p.pk for p in periods])
        raise PricingError("Für das gewählte Datum sind mehrere Preiszeiträume hinterlegt. Bitte kontaktieren Sie uns.")
    return periods[0]


def get_minimum_stay(day):
    try:
        return get_pricing_period(day).min_nights
    except PricingError:
        return DEFAULT_MINIMUM_STAY


def get_active_fees():
    return Fee.objects.filter(is_active=True).order_by('type', 'id')


def get_active_discounts():
    return Discount.objects.filter(is_active=True).order_by('type', 'id')


def load_pricing_snapshot(start_date, payment_settings=None):
    """
    Reads everything a price calculation needs in one go. Callers inside a
    transaction pass the (locked) payment settings row they already hold.
    """
    period = get_pricing_period(start_date)
    if payment_settings is None:
        payment_settings = PaymentSettings.get_active()
    return PricingSnapshot(
        period=period,
        fees=get_active_fees(),
        discounts=get_active_discounts(),
        payment_settings=payment_settings,
    )


def get_price_calendar(start_date, end_date):
    """
    Nightly rate and season for every day in [start_date, end_date].
    Days without a pricing period are returned with ``price`` None.
    """
    periods = list(PricingPeriod.objects.filter(start_date__lte=end_date, end_date__gte=start_date))
    calendar = []
    current = start_date
    while current <= end_date:
        period = next((p for p in periods if p.contains(current)), None)
        calendar.append({
            'date': current,
            'price': to_cents(period.base_price) if period else None,
            'season_type': period.season_type if period else None,
            'min_nights': period.min_nights if period else DEFAULT_MINIMUM_STAY,
        })
        current += timedelta(days=1)
    return calendar
