"""Discount codes: creation, validation and atomic apply/remove on enrollments."""
import logging
from decimal import InvalidOperation

from mentorhub import db
from mentorhub.models import Discount, DiscountApplication, Enrollment
from mentorhub.services.context import ADMIN
from mentorhub.services.errors import BusinessRuleViolation, NotFound, ValidationError
from mentorhub.services.ledger import compute_discount_amount, to_amount
from mentorhub.services.unit_of_work import UnitOfWork
from mentorhub.utils.helpers import parse_datetime, parse_decimal, utc_now

logger = logging.getLogger(__name__)


def _decimal_field(value, name):
    try:
        return parse_decimal(value)
    except (InvalidOperation, ValueError):
        raise ValidationError(f'{name} must be a number')


def _date_field(value, name):
    try:
        return parse_datetime(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{name} must be a valid date')


def create_discount(ctx, code, name, type, value, description=None, min_amount=None,
                    max_discount=None, usage_limit=None, start_date=None, end_date=None,
                    terms_and_conditions=None, is_active=True):
    ctx.require(ADMIN)

    if not code or not name or not type or value in (None, ''):
        raise ValidationError('Missing required fields')

    type = str(type).upper()
    if type not in Discount.TYPES:
        raise ValidationError('Discount type must be PERCENTAGE or FIXED')

    value = _decimal_field(value, 'value')
    if type == Discount.PERCENTAGE and (value < 0 or value > 100):
        raise ValidationError('Percentage must be between 0 and 100')
    if type == Discount.FIXED and value < 0:
        raise ValidationError('Fixed amount must be positive')

    min_amount = _decimal_field(min_amount, 'min_amount')
    max_discount = _decimal_field(max_discount, 'max_discount')
    start_date = _date_field(start_date, 'start_date')
    end_date = _date_field(end_date, 'end_date')
    if start_date and end_date and end_date < start_date:
        raise ValidationError('end_date must be after start_date')

    if usage_limit not in (None, ''):
        try:
            usage_limit = int(usage_limit)
        except (TypeError, ValueError):
            raise ValidationError('usage_limit must be an integer')
        if usage_limit < 0:
            raise ValidationError('usage_limit must not be negative')
    else:
        usage_limit = None

    code = str(code).strip().upper()

    with UnitOfWork() as uow:
        if Discount.query.filter_by(code=code).first():
            raise BusinessRuleViolation('Discount code already exists')

        discount = uow.add(Discount(
            code=code,
            name=name,
            description=description,
            type=type,
            value=to_amount(value),
            min_amount=to_amount(min_amount) if min_amount is not None else None,
            max_discount=to_amount(max_discount) if max_discount is not None else None,
            usage_limit=usage_limit,
            used_count=0,
            start_date=start_date,
            end_date=end_date,
            terms_and_conditions=terms_and_conditions,
            is_active=True if is_active is None else bool(is_active),
            created_by_id=ctx.user_id
        ))

    logger.info(f'Discount {discount.code} created by user {ctx.user_id}')
    return discount


def list_discounts(ctx, page=1, per_page=10):
    ctx.require(ADMIN)
    pagination = Discount.query.order_by(Discount.created_at.desc(), Discount.id.desc()).paginate(
        page=page, per_page=per_page, error_out=False
    )
    return {
        'discounts': [d.to_dict() for d in pagination.items],
        'pagination': {
            'page': pagination.page,
            'limit': pagination.per_page,
            'totalCount': pagination.total,
            'totalPages': pagination.pages
        }
    }


def validate_discount(discount, price, enrollment_id, now=None):
    """Raise the first rule ``discount`` breaks for this enrollment and price."""
    now = now or utc_now()

    if not discount.is_active:
        raise BusinessRuleViolation('Discount code is not active')

    if discount.start_date and discount.start_date > now:
        raise BusinessRuleViolation('Discount code is not yet active')

    if discount.end_date and discount.end_date < now:
        raise BusinessRuleViolation('Discount code has expired')

    if discount.usage_exhausted:
        raise BusinessRuleViolation('Discount code usage limit reached')

    if discount.min_amount is not None and price < discount.min_amount:
        raise BusinessRuleViolation(f'Minimum order amount of {to_amount(discount.min_amount)} required')

    # At most one discount per enrollment; removal restores exactly its stored amount.
    existing = DiscountApplication.query.filter_by(enrollment_id=enrollment_id).first()
    if existing:
        if existing.discount_id == discount.id:
            raise BusinessRuleViolation('Discount code already applied to this enrollment')
        raise BusinessRuleViolation('Another discount is already applied to this enrollment')


def apply_discount(ctx, code, enrollment_id, price):
    ctx.require(ADMIN)

    if not code or not enrollment_id or price in (None, ''):
        raise ValidationError('Missing required fields')
    price = _decimal_field(price, 'price')
    if price <= 0:
        raise ValidationError('price must be positive')
    price = to_amount(price)

    with UnitOfWork() as uow:
        discount = Discount.query.filter_by(code=str(code).strip().upper()).with_for_update().first()
        if not discount:
            raise NotFound('Invalid discount code')

        enrollment = db.session.get(Enrollment, enrollment_id, with_for_update=True)
        if not enrollment:
            raise NotFound('Enrollment not found')

        validate_discount(discount, price, enrollment.id)

        discount_amount = compute_discount_amount(price, discount)
        final_amount = price - discount_amount

        application = uow.add(DiscountApplication(
            discount_id=discount.id,
            enrollment_id=enrollment.id,
            amount=discount_amount,
            applied_by_id=ctx.user_id
        ))
        discount.used_count = Discount.used_count + 1
        enrollment.total_amount = final_amount
        enrollment.status = enrollment.derive_status()

    logger.info(f'Discount {discount.code} applied to enrollment {enrollment.id}: -{discount_amount}')
    return {
        'discountAmount': discount_amount,
        'finalAmount': final_amount,
        'application': application,
        'discount': discount,
        'enrollment': enrollment
    }


def remove_discount(ctx, enrollment_id):
    ctx.require(ADMIN)

    if not enrollment_id:
        raise ValidationError('Missing enrollment ID')

    with UnitOfWork() as uow:
        application = DiscountApplication.query.filter_by(enrollment_id=enrollment_id).first()
        if not application:
            raise NotFound('No discount applied to this enrollment')

        discount = db.session.get(Discount, application.discount_id, with_for_update=True)
        enrollment = db.session.get(Enrollment, enrollment_id, with_for_update=True)
        restored_amount = to_amount(application.amount)

        uow.delete(application)
        discount.used_count = Discount.used_count - 1
        # Re-add the delta; later edits to total_amount survive the removal.
        enrollment.total_amount = to_amount(enrollment.total_amount) + restored_amount
        enrollment.status = enrollment.derive_status()

    logger.info(f'Discount {discount.code} removed from enrollment {enrollment.id}: +{restored_amount}')
    return {
        'restoredAmount': restored_amount,
        'discount': discount,
        'enrollment': enrollment
    }
