"""Keeps each enrollment's cached ``paid_amount`` equal to its COMPLETED payments.

Every write path that touches money goes through this module: initial
funding when an enrollment is created, student payments, gateway captures
and admin edits of the paid amount. Each runs in a single unit of work so
the enrollment row and its payment rows are committed together.
"""
import logging
from datetime import timedelta
from decimal import InvalidOperation

from flask import current_app
from sqlalchemy import func

from mentorhub import db
from mentorhub.models import Course, Enrollment, MentorAssignment, Payment, User
from mentorhub.services.context import ADMIN, STUDENT
from mentorhub.services.errors import (BusinessRuleViolation, DependencyExists,
                                       NotFound, ValidationError)
from mentorhub.services.ledger import ZERO, default_rates, split_payment, to_amount
from mentorhub.services.unit_of_work import UnitOfWork
from mentorhub.utils import notifications
from mentorhub.utils.helpers import parse_datetime, parse_decimal, utc_now

logger = logging.getLogger(__name__)

COLLAPSE = 'collapse'
ADJUST = 'adjust'


def _amount_field(value, name, allow_zero=True):
    if value is None or value == '':
        raise ValidationError(f'{name} is required')
    try:
        amount = parse_decimal(value)
    except (InvalidOperation, ValueError):
        raise ValidationError(f'{name} must be a number')
    if amount < 0 or (amount == 0 and not allow_zero):
        raise ValidationError(f'{name} must be {"zero or more" if allow_zero else "positive"}')
    return to_amount(amount)


def completed_total(enrollment_id):
    total = db.session.query(func.coalesce(func.sum(Payment.amount), 0)).filter(
        Payment.enrollment_id == enrollment_id,
        Payment.status == Payment.COMPLETED
    ).scalar()
    return to_amount(total)


def _build_payment(enrollment, amount, payer_id, status, description, assignment_id=None):
    commission_rate, fee_rate = default_rates()
    split = split_payment(amount, commission_rate, fee_rate)
    payment = Payment(
        enrollment_id=enrollment.id,
        assignment_id=assignment_id,
        payer_id=payer_id,
        amount=to_amount(amount),
        mentor_commission=split.mentor_commission,
        platform_fee=split.platform_fee,
        status=status,
        description=description
    )
    if status == Payment.COMPLETED:
        payment.paid_at = utc_now()
    else:
        payment.due_date = utc_now() + timedelta(days=current_app.config.get('PAYMENT_DUE_DAYS', 7))
    return payment


def _refresh_balance(uow, enrollment, requested_status=None):
    uow.flush()
    enrollment.paid_amount = completed_total(enrollment.id)
    enrollment.status = enrollment.derive_status(requested_status)


def _get_enrollment_for_update(enrollment_id):
    enrollment = db.session.get(Enrollment, enrollment_id, with_for_update=True)
    if not enrollment:
        raise NotFound('Enrollment not found')
    return enrollment


def create_enrollment(ctx, student_id, course_id, total_amount=None, paid_amount=0, status=None):
    ctx.require(ADMIN)

    if not student_id or not course_id:
        raise ValidationError('Student ID and Course ID are required')
    if status is not None and status not in Enrollment.STATUSES:
        raise ValidationError('Invalid enrollment status')
    paid_amount = _amount_field(paid_amount if paid_amount is not None else 0, 'paid_amount')
    if total_amount not in (None, ''):
        total_amount = _amount_field(total_amount, 'total_amount')
    else:
        total_amount = None

    with UnitOfWork() as uow:
        student = User.query.filter_by(id=student_id, role=User.STUDENT).first()
        if not student:
            raise NotFound('Student not found')
        course = db.session.get(Course, course_id)
        if not course:
            raise NotFound('Course not found')

        existing = Enrollment.query.filter_by(student_id=student.id, course_id=course.id).first()
        if existing:
            raise BusinessRuleViolation('Student is already enrolled in this course')

        now = utc_now()
        enrollment = uow.add(Enrollment(
            student_id=student.id,
            course_id=course.id,
            status=status or Enrollment.ACTIVE,
            total_amount=total_amount if total_amount is not None else to_amount(course.price),
            paid_amount=ZERO,
            start_date=now,
            end_date=now + timedelta(days=course.duration or 0)
        ))
        uow.flush()

        payment = None
        if paid_amount > 0:
            payment = uow.add(_build_payment(
                enrollment, paid_amount, student.id, Payment.COMPLETED,
                f'Enrollment payment for {course.title}'
            ))
        _refresh_balance(uow, enrollment, status)

    logger.info(f'Enrollment {enrollment.id} created for student {student.id} in course {course.id}')
    notifications.send_enrollment_confirmation(enrollment.id)
    return enrollment, payment


def get_enrollment(ctx, enrollment_id):
    ctx.require(ADMIN)
    enrollment = db.session.get(Enrollment, enrollment_id)
    if not enrollment:
        raise NotFound('Enrollment not found')
    return enrollment


def record_payment(ctx, enrollment_id, amount, payer_id=None, assignment_id=None,
                   status=Payment.PENDING, description=None):
    """Record one payment against an enrollment.

    PENDING payments wait for the gateway; only COMPLETED ones move the
    enrollment balance. Students may only pay into their own enrollments.
    """
    ctx.require(ADMIN, STUDENT)

    if not enrollment_id:
        raise ValidationError('Enrollment ID and amount are required')
    amount = _amount_field(amount, 'amount', allow_zero=False)
    if status not in (Payment.PENDING, Payment.COMPLETED):
        raise ValidationError('A new payment must be PENDING or COMPLETED')

    with UnitOfWork() as uow:
        enrollment = _get_enrollment_for_update(enrollment_id)
        if ctx.role == STUDENT and enrollment.student_id != ctx.user_id:
            raise NotFound('Enrollment not found')
        if enrollment.status == Enrollment.CANCELLED:
            raise BusinessRuleViolation('Cannot record a payment on a cancelled enrollment')

        remaining = to_amount(enrollment.total_amount) - completed_total(enrollment.id)
        if amount > remaining:
            raise BusinessRuleViolation(
                f'Payment amount cannot exceed remaining balance of {to_amount(max(remaining, ZERO))}'
            )

        if payer_id is not None and not db.session.get(User, payer_id):
            raise NotFound('Payer not found')

        if assignment_id is not None:
            assignment = db.session.get(MentorAssignment, assignment_id)
            if not assignment or assignment.enrollment_id != enrollment.id:
                raise ValidationError('Assignment does not belong to this enrollment')
        else:
            assignment = enrollment.assignments.order_by(MentorAssignment.id).first()

        payment = uow.add(_build_payment(
            enrollment,
            amount,
            payer_id or ctx.user_id or enrollment.student_id,
            status,
            description or f'Payment for {enrollment.course.title}',
            assignment_id=assignment.id if assignment else None
        ))
        if status == Payment.COMPLETED:
            _refresh_balance(uow, enrollment)

    logger.info(f'Payment {payment.id} of {amount} recorded on enrollment {enrollment.id} ({status})')
    if status == Payment.COMPLETED:
        notifications.send_payment_received_notification(payment.id)
    return payment


def reconcile_on_edit(ctx, enrollment_id, paid_amount, total_amount, status=None, start_date=None):
    """Apply an admin edit of an enrollment's totals and bring payments in line.

    An increase adds one COMPLETED payment for the difference. A decrease
    either collapses the history into one payment for the new total
    (``collapse``, the default) or appends a negative adjustment
    (``adjust``), depending on ``LEDGER_DECREASE_STRATEGY``.
    """
    ctx.require(ADMIN)

    new_paid = _amount_field(paid_amount, 'paid_amount')
    new_total = _amount_field(total_amount, 'total_amount')
    if status is not None and status not in Enrollment.STATUSES:
        raise ValidationError('Invalid enrollment status')
    try:
        new_start = parse_datetime(start_date)
    except (TypeError, ValueError):
        raise ValidationError('start_date must be a valid date')

    strategy = current_app.config.get('LEDGER_DECREASE_STRATEGY', COLLAPSE)
    if strategy not in (COLLAPSE, ADJUST):
        raise ValidationError(f'Unknown ledger decrease strategy: {strategy}')

    with UnitOfWork() as uow:
        enrollment = _get_enrollment_for_update(enrollment_id)
        current = completed_total(enrollment.id)
        course_title = enrollment.course.title

        if new_paid > current:
            delta = new_paid - current
            uow.add(_build_payment(
                enrollment, delta, enrollment.student_id, Payment.COMPLETED,
                f'Payment update for {course_title} - Additional payment'
            ))
            logger.info(f'Enrollment {enrollment.id}: paid amount raised by {delta}')
        elif new_paid < current:
            if strategy == COLLAPSE:
                Payment.query.filter_by(enrollment_id=enrollment.id).delete(synchronize_session='fetch')
                if new_paid > 0:
                    uow.add(_build_payment(
                        enrollment, new_paid, enrollment.student_id, Payment.COMPLETED,
                        f'Payment update for {course_title} - Adjusted payment'
                    ))
                logger.info(f'Enrollment {enrollment.id}: payment history collapsed to {new_paid}')
            else:
                delta = new_paid - current
                uow.add(_build_payment(
                    enrollment, delta, enrollment.student_id, Payment.COMPLETED,
                    f'Payment update for {course_title} - Balance adjustment'
                ))
                logger.info(f'Enrollment {enrollment.id}: adjustment of {delta} recorded')

        enrollment.total_amount = new_total
        if new_start is not None:
            enrollment.start_date = new_start
        _refresh_balance(uow, enrollment, status or enrollment.status)

    return enrollment


def capture_payment_result(ctx, payment_id, succeeded, reference=None):
    """Settle a PENDING payment from the gateway outcome.

    Returns ``(payment, processed)``; ``processed`` is False when the payment
    was already COMPLETED or FAILED and nothing changed.
    """
    with UnitOfWork() as uow:
        enrollment_id = db.session.query(Payment.enrollment_id).filter(Payment.id == payment_id).scalar()
        if enrollment_id is None:
            raise NotFound('Payment not found')

        # Enrollment before payment, the same lock order as reconcile_on_edit.
        enrollment = _get_enrollment_for_update(enrollment_id)
        payment = db.session.get(Payment, payment_id, with_for_update=True, populate_existing=True)
        if not payment:
            raise NotFound('Payment not found')

        if payment.is_terminal:
            logger.info(f'Payment {payment.id} already {payment.status}, ignoring capture result')
            return payment, False

        if reference:
            payment.gateway_reference = reference

        if succeeded:
            payment.status = Payment.COMPLETED
            payment.paid_at = utc_now()
            _refresh_balance(uow, enrollment)
        else:
            payment.status = Payment.FAILED

    logger.info(f'Payment {payment.id} captured as {payment.status} by {ctx.role}')
    if succeeded:
        notifications.send_payment_received_notification(payment.id)
    return payment, True


def delete_enrollment(ctx, enrollment_id):
    ctx.require(ADMIN)

    with UnitOfWork() as uow:
        enrollment = _get_enrollment_for_update(enrollment_id)
        payments_count = enrollment.payments.count()
        assignments_count = enrollment.assignments.count()

        if payments_count > 0 or assignments_count > 0:
            raise DependencyExists(
                f'Cannot delete enrollment. It has {payments_count} payment(s) and '
                f'{assignments_count} assignment(s). Please remove these dependencies first.'
            )

        uow.delete(enrollment)

    logger.info(f'Enrollment {enrollment_id} deleted')
