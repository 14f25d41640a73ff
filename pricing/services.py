# pricing/services.py
# version: 1.0.0
# FEATURE: Price calculation for a stay: nights x seasonal rate, fees, discounts and the deposit split.

"""
Pricing calculation
===================

Everything in this module is a pure function of its arguments. The database
is read once by ``pricing.selectors.load_pricing_snapshot`` and the resulting
``PricingSnapshot`` is handed in, so a quote never mixes settings fetched at
different moments.

Calculation flow:
1. nights x base price (+ nights x room surcharge when the extra room is booked)
2. fees per calculation mode, bucketed into online / on site
3. the single best catalog discount (+ an optional manual discount) on
   base price + surcharge
4. online total = base + surcharge + online fees - discounts
5. deposit / remaining split of the online total
"""

import logging
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.utils import timezone

from .models import Fee

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
HUNDRED = Decimal(100)
ZERO = Decimal('0.00')

NO_PRICING_MESSAGE = "Für den gewählten Zeitraum sind keine Preise hinterlegt"


class PricingError(Exception):
    """A stay that cannot be priced: no period, invalid range or stay length out of bounds."""


def to_cents(value):
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def count_nights(start_date, end_date):
    nights = (end_date - start_date).days
    if nights <= 0:
        raise PricingError("Das Abreisedatum muss nach dem Anreisedatum liegen.")
    return nights


def check_stay_length(period, nights):
    if nights < period.min_nights:
        raise PricingError(f"Mindestaufenthalt: {period.min_nights} Nächte")
    if nights > period.max_nights:
        raise PricingError(f"Maximaler Aufenthalt: {period.max_nights} Nächte")


class PricingSnapshot:
    """The pricing configuration valid for one quote."""

    def __init__(self, period, fees, discounts, payment_settings):
        self.period = period
        self.fees = list(fees)
        self.discounts = list(discounts)
        self.payment_settings = payment_settings


def calculate_fee_amount(fee, num_guests, nights):
    amount = Decimal(fee.amount)
    if fee.calculation_type == Fee.CalculationType.PER_NIGHT:
        amount *= nights
    elif fee.calculation_type == Fee.CalculationType.PER_PERSON:
        amount *= num_guests
    elif fee.calculation_type == Fee.CalculationType.PER_PERSON_NIGHT:
        amount *= num_guests * nights
    return to_cents(amount)


def _fee_line(fee, amount, language):
    return {
        'id': fee.pk,
        'name': fee.get_name(language),
        'amount': amount,
        'calculation_type': fee.calculation_type,
        'payment_location': fee.payment_location,
    }


def resolve_fees(fees, num_adults, num_children, nights, selected_fee_ids=(), language='de'):
    """
    Mandatory fees are always charged, optional ones only when their id was selected.
    """
    num_guests = num_adults + num_children
    selected = set(selected_fee_ids or ())
    result = {
        'mandatory_fees': [],
        'optional_fees': [],
        'online_total': ZERO,
        'on_site_total': ZERO,
    }

    for fee in fees:
        if not fee.is_active:
            continue
        if fee.type == Fee.FeeType.OPTIONAL and fee.pk not in selected:
            continue

        amount = calculate_fee_amount(fee, num_guests, nights)
        bucket = 'mandatory_fees' if fee.type == Fee.FeeType.MANDATORY else 'optional_fees'
        result[bucket].append(_fee_line(fee, amount, language))

        if fee.payment_location == Fee.PaymentLocation.ONLINE:
            result['online_total'] += amount
        else:
            result['on_site_total'] += amount

    return result


def optional_fee_choices(fees, num_adults, num_children, nights, language='de'):
    """All bookable extras with the price they would add to this stay."""
    num_guests = num_adults + num_children
    return [
        _fee_line(fee, calculate_fee_amount(fee, num_guests, nights), language)
        for fee in fees
        if fee.is_active and fee.type == Fee.FeeType.OPTIONAL
    ]


def _discount_priority(discount):
    # Highest percentage first; equal percentages by type name, then by id.
    return (-Decimal(discount.discount_percentage), discount.type, discount.pk or 0)


def resolve_discounts(discounts, nights, start_date, today, base_price, room_surcharge,
                      manual_percentage=0, manual_reason=''):
    """
    Returns the discount lines for a stay: at most one catalog discount (the
    highest applicable percentage) plus the manual discount when one is set.
    """
    days_until_arrival = (start_date - today).days
    discountable = Decimal(base_price) + Decimal(room_surcharge)

    applicable = [
        discount for discount in discounts
        if discount.is_active and discount.is_applicable(nights, days_until_arrival)
    ]

    lines = []
    if applicable:
        best = min(applicable, key=_discount_priority)
        percentage = Decimal(best.discount_percentage)
        lines.append({
            'type': best.type,
            'label': best.get_type_display(),
            'percentage': percentage,
            'amount': to_cents(discountable * percentage / HUNDRED),
        })

    manual = Decimal(manual_percentage or 0)
    if manual > 0:
        lines.append({
            'type': 'manual',
            'label': 'Manueller Rabatt',
            'percentage': manual,
            'amount': to_cents(discountable * manual / HUNDRED),
            'reason': manual_reason or '',
        })

    return lines


def aggregate_totals(base_price, room_surcharge, fees, discounts, payment_settings, start_date, today):
    """
    Online and on-site totals plus the deposit/remaining split.
    Discounts only reduce the online total; on-site fees are never discounted.
    """
    discount_total = sum((line['amount'] for line in discounts), ZERO)
    total_online = to_cents(Decimal(base_price) + Decimal(room_surcharge) + fees['online_total'] - discount_total)
    if total_online < ZERO:
        total_online = ZERO

    deposit_percentage = Decimal(payment_settings.deposit_percentage)
    deposit_amount = to_cents(total_online * deposit_percentage / HUNDRED)
    remaining_amount = to_cents(total_online - deposit_amount)

    return {
        'discount_total': to_cents(discount_total),
        'total_online': total_online,
        'total_on_site': to_cents(fees['on_site_total']),
        'deposit_percentage': deposit_percentage,
        'deposit_amount': deposit_amount,
        'remaining_amount': remaining_amount,
        'deposit_due_date': today + timedelta(days=payment_settings.deposit_due_days),
        'remaining_due_date': start_date - timedelta(days=payment_settings.remaining_due_days),
    }


def calculate_price_breakdown(snapshot, start_date, end_date, num_adults, num_children=0,
                              with_extra_room=False, selected_fee_ids=(),
                              manual_discount_percentage=0, manual_discount_reason='',
                              today=None, language='de'):
    """
    Full price breakdown for a stay, as shown in the booking form and copied
    into the booking on submission.
    """
    today = today or timezone.localdate()
    nights = count_nights(start_date, end_date)

    period = snapshot.period
    if period is None:
        raise PricingError(NO_PRICING_MESSAGE)
    check_stay_length(period, nights)

    if snapshot.payment_settings is None:
        raise PricingError("Es sind keine aktiven Zahlungseinstellungen hinterlegt.")

    base_price = to_cents(Decimal(period.base_price) * nights)
    room_surcharge = to_cents(Decimal(period.room_surcharge) * nights) if with_extra_room else ZERO

    fees = resolve_fees(snapshot.fees, num_adults, num_children, nights, selected_fee_ids, language)
    discounts = resolve_discounts(
        snapshot.discounts, nights, start_date, today, base_price, room_surcharge,
        manual_discount_percentage, manual_discount_reason,
    )

    breakdown = {
        'start_date': start_date,
        'end_date': end_date,
        'nights': nights,
        'season_type': period.season_type,
        'nightly_rate': to_cents(period.base_price),
        'base_price': base_price,
        'room_surcharge': room_surcharge,
        'mandatory_fees': fees['mandatory_fees'],
        'optional_fees': fees['optional_fees'],
        'discounts': discounts,
    }
    breakdown.update(aggregate_totals(
        base_price, room_surcharge, fees, discounts, snapshot.payment_settings, start_date, today,
    ))
    logger.debug("Priced %s - %s (%s nights): online %s, on site %s",
                 start_date, end_date, nights, breakdown['total_online'], breakdown['total_on_site'])
    return breakdown
