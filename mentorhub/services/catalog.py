import logging

from mentorhub import db
from mentorhub.models import Course
from mentorhub.services.context import ADMIN
from mentorhub.services.errors import DependencyExists, NotFound, ValidationError
from mentorhub.services.ledger import to_amount
from mentorhub.services.unit_of_work import UnitOfWork
from mentorhub.utils.helpers import parse_decimal

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('title', 'description', 'price', 'duration', 'level', 'category')


def _clean(data):
    if any(data.get(field) in (None, '') for field in REQUIRED_FIELDS):
        raise ValidationError('All required fields must be provided')
    try:
        price = parse_decimal(data['price'])
        duration = int(data['duration'])
    except (ArithmeticError, TypeError, ValueError):
        raise ValidationError('Price and duration must be numbers')
    if price < 0 or duration <= 0:
        raise ValidationError('Price must not be negative and duration must be positive')
    return {
        'title': data['title'],
        'description': data['description'],
        'price': to_amount(price),
        'duration': duration,
        'level': data['level'],
        'category': data['category'],
        'is_active': data.get('is_active') is not False
    }


def create_course(ctx, data):
    ctx.require(ADMIN)
    fields = _clean(data)
    with UnitOfWork() as uow:
        course = uow.add(Course(created_by_id=ctx.user_id, **fields))
    logger.info(f'Course {course.id} created')
    return course


def get_course(ctx, course_id):
    ctx.require(ADMIN)
    course = db.session.get(Course, course_id)
    if not course:
        raise NotFound('Course not found')
    return course


def update_course(ctx, course_id, data):
    ctx.require(ADMIN)
    fields = _clean(data)
    with UnitOfWork():
        course = db.session.get(Course, course_id, with_for_update=True)
        if not course:
            raise NotFound('Course not found')
        for name, value in fields.items():
            setattr(course, name, value)
    return course


def delete_course(ctx, course_id):
    ctx.require(ADMIN)
    with UnitOfWork() as uow:
        course = db.session.get(Course, course_id, with_for_update=True)
        if not course:
            raise NotFound('Course not found')
        if course.enrollments.count() > 0 or course.assignments.count() > 0:
            raise DependencyExists(
                'Cannot delete course with existing enrollments or assignments. '
                'Please remove all enrollments and assignments first.'
            )
        uow.delete(course)
    logger.info(f'Course {course_id} deleted')
