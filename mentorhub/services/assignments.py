import logging
from decimal import InvalidOperation

from flask import current_app

from mentorhub import db
from mentorhub.models import Course, Enrollment, MentorAssignment, Payment, User
from mentorhub.services.context import ADMIN
from mentorhub.services.errors import (BusinessRuleViolation, DependencyExists,
                                       NotFound, ValidationError)
from mentorhub.services.unit_of_work import UnitOfWork
from mentorhub.utils.helpers import parse_decimal

logger = logging.getLogger(__name__)


def _commission_rate(value):
    try:
        rate = parse_decimal(value)
    except (InvalidOperation, ValueError):
        raise ValidationError('Commission rate must be a number')
    if rate is None or not rate.is_finite() or rate < 0 or rate > 100:
        raise ValidationError('Commission rate must be between 0 and 100')
    return rate


def _get_assignment(assignment_id):
    assignment = db.session.get(MentorAssignment, assignment_id, with_for_update=True)
    if not assignment:
        raise NotFound('Assignment not found')
    return assignment


def _already_assigned(mentor_id, enrollment_id):
    return MentorAssignment.query.filter_by(mentor_id=mentor_id, enrollment_id=enrollment_id).first()


def create_assignment(ctx, mentor_id, enrollment_id, commission_rate=None):
    ctx.require(ADMIN)

    if not mentor_id or not enrollment_id:
        raise ValidationError('Mentor ID and Enrollment ID are required')
    if commission_rate is None:
        commission_rate = current_app.config.get('DEFAULT_ASSIGNMENT_COMMISSION', 37.0)
    commission_rate = _commission_rate(commission_rate)

    with UnitOfWork() as uow:
        enrollment = db.session.get(Enrollment, enrollment_id)
        if not enrollment:
            raise NotFound('Enrollment not found')

        mentor = User.query.filter_by(id=mentor_id, role=User.MENTOR).first()
        if not mentor:
            raise NotFound('Mentor not found')
        student = User.query.filter_by(id=enrollment.student_id, role=User.STUDENT).first()
        if not student:
            raise NotFound('Student not found')
        course = db.session.get(Course, enrollment.course_id)
        if not course:
            raise NotFound('Course not found')

        if _already_assigned(mentor.id, enrollment.id):
            raise BusinessRuleViolation('Assignment already exists for this mentor and enrollment')

        assignment = uow.add(MentorAssignment(
            mentor_id=mentor.id,
            student_id=student.id,
            course_id=course.id,
            enrollment_id=enrollment.id,
            commission=commission_rate,
            status=MentorAssignment.ACTIVE
        ))

    logger.info(f'Mentor {mentor_id} assigned to enrollment {enrollment_id}')
    return assignment


def get_assignment(ctx, assignment_id):
    ctx.require(ADMIN)
    assignment = db.session.get(MentorAssignment, assignment_id)
    if not assignment:
        raise NotFound('Assignment not found')
    return assignment


def update_assignment(ctx, assignment_id, commission=None, status=None):
    ctx.require(ADMIN)

    if commission not in (None, ''):
        commission = _commission_rate(commission)
    else:
        commission = None
    if status and status not in MentorAssignment.STATUSES:
        raise ValidationError('Invalid assignment status')

    with UnitOfWork():
        assignment = _get_assignment(assignment_id)
        if commission is not None:
            assignment.commission = commission
        if status:
            assignment.status = status

    return assignment


def reassign(ctx, assignment_id, new_mentor_id):
    ctx.require(ADMIN)

    if not new_mentor_id:
        raise ValidationError('New mentor ID is required')

    with UnitOfWork():
        assignment = _get_assignment(assignment_id)

        new_mentor = User.query.filter_by(id=new_mentor_id, role=User.MENTOR).first()
        if not new_mentor:
            raise ValidationError('Invalid mentor selected')

        if _already_assigned(new_mentor.id, assignment.enrollment_id):
            raise BusinessRuleViolation('This mentor is already assigned to this student for this course')

        previous_mentor_id = assignment.mentor_id
        assignment.mentor_id = new_mentor.id
        assignment.status = MentorAssignment.ACTIVE

    logger.info(f'Assignment {assignment_id} moved from mentor {previous_mentor_id} to {new_mentor_id}')
    return assignment


def unassign(ctx, assignment_id):
    ctx.require(ADMIN)

    with UnitOfWork() as uow:
        assignment = _get_assignment(assignment_id)

        payments_count = Payment.query.filter_by(assignment_id=assignment.id).count()
        if payments_count > 0:
            raise DependencyExists('Cannot delete assignment with existing payments. Please remove payments first.')

        uow.delete(assignment)

    logger.info(f'Assignment {assignment_id} removed')
