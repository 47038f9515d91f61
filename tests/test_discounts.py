from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import ctx_for, reload
from mentorhub.models import Discount, DiscountApplication, Enrollment, User
from mentorhub.services import discounts, reconciliation
from mentorhub.services.errors import BusinessRuleViolation, NotFound, Unauthorized, ValidationError
from mentorhub.utils.helpers import utc_now


@pytest.fixture
def enrollment(admin_ctx, make_user, make_course):
    student = make_user(role=User.STUDENT)
    course = make_course(price='1000')
    enrollment, _ = reconciliation.create_enrollment(admin_ctx, student.id, course.id)
    return enrollment


@pytest.fixture
def make_discount(admin_ctx):
    def _make(code='SPRING10', type='PERCENTAGE', value='10', **kwargs):
        return discounts.create_discount(admin_ctx, code=code, name='Spring sale', type=type, value=value, **kwargs)
    return _make


def test_create_discount_normalizes_code(make_discount):
    discount = make_discount(code=' spring10 ')
    assert discount.code == 'SPRING10'
    assert discount.used_count == 0
    assert discount.is_active is True


def test_create_discount_rejects_duplicate_code(make_discount):
    make_discount(code='SPRING10')
    with pytest.raises(BusinessRuleViolation):
        make_discount(code='spring10')


@pytest.mark.parametrize('type, value', [
    ('PERCENTAGE', '150'),
    ('PERCENTAGE', '-1'),
    ('FIXED', '-5'),
    ('BOGO', '5'),
    ('FIXED', 'free'),
])
def test_create_discount_validates_value(make_discount, type, value):
    with pytest.raises(ValidationError):
        make_discount(type=type, value=value)


def test_create_discount_validates_dates(make_discount):
    with pytest.raises(ValidationError):
        make_discount(start_date='2026-05-01', end_date='2026-04-01')


def test_create_discount_requires_fields(admin_ctx):
    with pytest.raises(ValidationError):
        discounts.create_discount(admin_ctx, code='X', name=None, type='FIXED', value='1')


def test_only_admins_manage_discounts(app_ctx, make_user):
    student = make_user(role=User.STUDENT)
    with pytest.raises(Unauthorized):
        discounts.create_discount(ctx_for(student), code='X', name='X', type='FIXED', value='1')


def test_list_discounts_paginates(admin_ctx, make_discount):
    for code in ('A1', 'B2', 'C3'):
        make_discount(code=code)

    result = discounts.list_discounts(admin_ctx, page=1, per_page=2)
    assert len(result['discounts']) == 2
    assert result['pagination']['totalCount'] == 3
    assert result['pagination']['totalPages'] == 2


def test_apply_percentage_discount(admin_ctx, enrollment, make_discount):
    make_discount(code='SPRING10', value='10')

    result = discounts.apply_discount(admin_ctx, 'spring10', enrollment.id, '1000')

    assert result['discountAmount'] == Decimal('100.00')
    assert result['finalAmount'] == Decimal('900.00')
    enrollment = reload(Enrollment, enrollment.id)
    assert enrollment.total_amount == Decimal('900.00')
    assert enrollment.status == Enrollment.ACTIVE
    assert Discount.query.filter_by(code='SPRING10').one().used_count == 1
    assert DiscountApplication.query.filter_by(enrollment_id=enrollment.id).count() == 1


def test_apply_capped_percentage_discount(admin_ctx, enrollment, make_discount):
    make_discount(code='BIG50', value='50', max_discount='200')
    result = discounts.apply_discount(admin_ctx, 'BIG50', enrollment.id, '1000')
    assert result['discountAmount'] == Decimal('200.00')
    assert result['finalAmount'] == Decimal('800.00')


def test_fixed_discount_above_price_is_clamped(admin_ctx, enrollment, make_discount):
    make_discount(code='FREE', type='FIXED', value='5000')
    result = discounts.apply_discount(admin_ctx, 'FREE', enrollment.id, '1000')
    assert result['discountAmount'] == Decimal('1000.00')
    assert result['finalAmount'] == Decimal('0.00')


def test_discount_applies_once_per_enrollment(admin_ctx, enrollment, make_discount):
    make_discount(code='SPRING10')
    discounts.apply_discount(admin_ctx, 'SPRING10', enrollment.id, '1000')

    with pytest.raises(BusinessRuleViolation, match='already applied'):
        discounts.apply_discount(admin_ctx, 'SPRING10', enrollment.id, '1000')
    assert Discount.query.filter_by(code='SPRING10').one().used_count == 1


def test_usage_limit(admin_ctx, enrollment, make_discount, make_user, make_course):
    make_discount(code='ONCE', usage_limit=1)
    discounts.apply_discount(admin_ctx, 'ONCE', enrollment.id, '1000')

    other_student = make_user(role=User.STUDENT)
    other, _ = reconciliation.create_enrollment(admin_ctx, other_student.id, make_course(title='Go').id)
    with pytest.raises(BusinessRuleViolation, match='usage limit'):
        discounts.apply_discount(admin_ctx, 'ONCE', other.id, '1000')
    assert reload(Enrollment, other.id).total_amount == Decimal('100000.00')


@pytest.mark.parametrize('kwargs, message', [
    ({'is_active': False}, 'not active'),
    ({'start_date': utc_now() + timedelta(days=2)}, 'not yet active'),
    ({'end_date': utc_now() - timedelta(days=2)}, 'expired'),
    ({'min_amount': '5000'}, 'Minimum order amount'),
])
def test_discount_rules(admin_ctx, enrollment, make_discount, kwargs, message):
    make_discount(code='RULES', **kwargs)
    with pytest.raises(BusinessRuleViolation, match=message):
        discounts.apply_discount(admin_ctx, 'RULES', enrollment.id, '1000')
    assert reload(Enrollment, enrollment.id).total_amount == Decimal('1000.00')


def test_inactive_is_reported_before_expired(admin_ctx, enrollment, make_discount):
    make_discount(code='OLD', is_active=False, end_date=utc_now() - timedelta(days=2))
    with pytest.raises(BusinessRuleViolation, match='not active'):
        discounts.apply_discount(admin_ctx, 'OLD', enrollment.id, '1000')


def test_apply_unknown_code(admin_ctx, enrollment):
    with pytest.raises(NotFound):
        discounts.apply_discount(admin_ctx, 'NOPE', enrollment.id, '1000')


def test_apply_requires_positive_price(admin_ctx, enrollment, make_discount):
    make_discount(code='SPRING10')
    with pytest.raises(ValidationError):
        discounts.apply_discount(admin_ctx, 'SPRING10', enrollment.id, '0')


def test_remove_discount_restores_total(admin_ctx, enrollment, make_discount):
    make_discount(code='SPRING10')
    discounts.apply_discount(admin_ctx, 'SPRING10', enrollment.id, '1000')

    result = discounts.remove_discount(admin_ctx, enrollment.id)

    assert result['restoredAmount'] == Decimal('100.00')
    assert reload(Enrollment, enrollment.id).total_amount == Decimal('1000.00')
    assert Discount.query.filter_by(code='SPRING10').one().used_count == 0
    assert DiscountApplication.query.count() == 0


def test_remove_discount_keeps_later_edits(admin_ctx, enrollment, make_discount):
    make_discount(code='SPRING10')
    discounts.apply_discount(admin_ctx, 'SPRING10', enrollment.id, '1000')
    reconciliation.reconcile_on_edit(admin_ctx, enrollment.id, paid_amount=0, total_amount='950')

    discounts.remove_discount(admin_ctx, enrollment.id)
    assert reload(Enrollment, enrollment.id).total_amount == Decimal('1050.00')


def test_remove_without_discount(admin_ctx, enrollment):
    with pytest.raises(NotFound):
        discounts.remove_discount(admin_ctx, enrollment.id)


def test_removed_discount_can_be_applied_again(admin_ctx, enrollment, make_discount):
    make_discount(code='SPRING10')
    discounts.apply_discount(admin_ctx, 'SPRING10', enrollment.id, '1000')
    discounts.remove_discount(admin_ctx, enrollment.id)

    result = discounts.apply_discount(admin_ctx, 'SPRING10', enrollment.id, '1000')
    assert result['finalAmount'] == Decimal('900.00')
    assert Discount.query.filter_by(code='SPRING10').one().used_count == 1


def test_second_discount_is_rejected(admin_ctx, enrollment, make_discount):
    make_discount(code='A10', value='10')
    make_discount(code='B5', type='FIXED', value='5')
    discounts.apply_discount(admin_ctx, 'A10', enrollment.id, '1000')

    with pytest.raises(BusinessRuleViolation, match='Another discount'):
        discounts.apply_discount(admin_ctx, 'B5', enrollment.id, '1000')

    assert reload(Enrollment, enrollment.id).total_amount == Decimal('900.00')
    assert DiscountApplication.query.filter_by(enrollment_id=enrollment.id).count() == 1
    assert Discount.query.filter_by(code='B5').one().used_count == 0

    discounts.remove_discount(admin_ctx, enrollment.id)
    assert reload(Enrollment, enrollment.id).total_amount == Decimal('1000.00')


def test_discount_updates_enrollment_status(admin_ctx, enrollment, make_discount):
    reconciliation.reconcile_on_edit(admin_ctx, enrollment.id, paid_amount='900', total_amount='1000')
    assert reload(Enrollment, enrollment.id).status == Enrollment.ACTIVE
    make_discount(code='SPRING10')

    discounts.apply_discount(admin_ctx, 'SPRING10', enrollment.id, '1000')
    enrollment = reload(Enrollment, enrollment.id)
    assert enrollment.total_amount == Decimal('900.00')
    assert enrollment.status == Enrollment.COMPLETED

    discounts.remove_discount(admin_ctx, enrollment.id)
    enrollment = reload(Enrollment, enrollment.id)
    assert enrollment.total_amount == Decimal('1000.00')
    assert enrollment.status == Enrollment.ACTIVE
