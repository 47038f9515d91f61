from decimal import Decimal

import pytest

from conftest import reload
from mentorhub.models import Course, User
from mentorhub.services import catalog, reconciliation
from mentorhub.services.errors import DependencyExists, NotFound, ValidationError

COURSE = {
    'title': 'Flask in Practice',
    'description': 'Web services with Flask',
    'price': '2500',
    'duration': 45,
    'level': 'intermediate',
    'category': 'web'
}


def test_create_course(admin_ctx):
    course = catalog.create_course(admin_ctx, COURSE)
    assert course.price == Decimal('2500.00')
    assert course.is_active is True
    assert course.created_by_id == admin_ctx.user_id


@pytest.mark.parametrize('field, value', [
    ('title', ''),
    ('price', None),
    ('price', 'cheap'),
    ('price', '-1'),
    ('duration', 0),
])
def test_create_course_validation(admin_ctx, field, value):
    with pytest.raises(ValidationError):
        catalog.create_course(admin_ctx, {**COURSE, field: value})
    assert Course.query.count() == 0


def test_update_course(admin_ctx):
    course = catalog.create_course(admin_ctx, COURSE)
    updated = catalog.update_course(admin_ctx, course.id, {**COURSE, 'price': '3000', 'is_active': False})
    assert updated.price == Decimal('3000.00')
    assert updated.is_active is False


def test_update_missing_course(admin_ctx):
    with pytest.raises(NotFound):
        catalog.update_course(admin_ctx, 99, COURSE)


def test_delete_course(admin_ctx):
    course_id = catalog.create_course(admin_ctx, COURSE).id
    catalog.delete_course(admin_ctx, course_id)
    assert reload(Course, course_id) is None


def test_delete_course_with_enrollments_is_refused(admin_ctx, make_user):
    course = catalog.create_course(admin_ctx, COURSE)
    student = make_user(role=User.STUDENT)
    reconciliation.create_enrollment(admin_ctx, student.id, course.id)

    with pytest.raises(DependencyExists):
        catalog.delete_course(admin_ctx, course.id)
    assert reload(Course, course.id) is not None
