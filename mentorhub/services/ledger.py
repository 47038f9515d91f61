"""Commission, platform fee and discount arithmetic.

Everything here is pure: amounts in, amounts out, quantized to cents.
"""
from collections import namedtuple
from decimal import Decimal, ROUND_HALF_UP

from flask import current_app, has_app_context

MENTOR_COMMISSION_RATE = Decimal('0.37')
PLATFORM_FEE_RATE = Decimal('0.03')

PERCENTAGE = 'PERCENTAGE'
FIXED = 'FIXED'

CENT = Decimal('0.01')
ZERO = Decimal('0.00')

PaymentSplit = namedtuple('PaymentSplit', ['mentor_commission', 'platform_fee'])


def to_amount(value):
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def default_rates():
    """Commission and fee rates from the app config, else the module defaults."""
    if not has_app_context():
        return MENTOR_COMMISSION_RATE, PLATFORM_FEE_RATE
    config = current_app.config
    commission = config.get('MENTOR_COMMISSION_RATE', MENTOR_COMMISSION_RATE)
    fee = config.get('PLATFORM_FEE_RATE', PLATFORM_FEE_RATE)
    return Decimal(str(commission)), Decimal(str(fee))


def split_payment(amount, commission_rate=MENTOR_COMMISSION_RATE, platform_rate=PLATFORM_FEE_RATE):
    """Split ``amount`` into mentor commission and platform fee.

    Rates are not checked against each other: historical payments were taken
    under different rates, so a sum above one is the caller's business.
    """
    amount = Decimal(str(amount))
    commission = amount * Decimal(str(commission_rate))
    fee = amount * Decimal(str(platform_rate))
    return PaymentSplit(to_amount(commission), to_amount(fee))


def compute_discount_amount(price, discount):
    """Amount ``discount`` takes off ``price``; never negative, never above price.

    ``discount`` is anything with ``type``, ``value`` and ``max_discount``.
    """
    price = to_amount(price)
    if price <= ZERO:
        return ZERO

    value = Decimal(str(discount.value))
    if discount.type == PERCENTAGE:
        amount = price * value / Decimal('100')
        if discount.max_discount is not None:
            amount = min(amount, Decimal(str(discount.max_discount)))
    elif discount.type == FIXED:
        amount = value
    else:
        raise ValueError(f'Unknown discount type: {discount.type}')

    amount = max(min(amount, price), ZERO)
    return to_amount(amount)
