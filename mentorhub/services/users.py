import logging

from mentorhub import db
from mentorhub.models import Enrollment, MentorAssignment, Payment, User
from mentorhub.services.context import ADMIN
from mentorhub.services.errors import (BusinessRuleViolation, DependencyExists,
                                       NotFound, ValidationError)
from mentorhub.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


def _normalize_email(email):
    return (email or '').strip().lower()


def _get_user_for_update(user_id):
    user = db.session.get(User, user_id, with_for_update=True)
    if not user:
        raise NotFound('User not found')
    return user


def create_user(ctx, email, full_name, role, password, telegram_chat_id=None):
    ctx.require(ADMIN)

    email = _normalize_email(email)
    if not email or not full_name or not role or not password:
        raise ValidationError('Email, full name, role and password are required')
    if role not in User.ROLES:
        raise ValidationError('Invalid role')

    with UnitOfWork() as uow:
        if User.query.filter_by(email=email).first():
            raise BusinessRuleViolation('A user with this email already exists')

        user = User(
            email=email,
            full_name=full_name,
            role=role,
            telegram_chat_id=telegram_chat_id,
            is_active=True
        )
        user.set_password(password)
        uow.add(user)

    logger.info(f'User {user.id} ({role}) created')
    return user


def get_user(ctx, user_id):
    ctx.require(ADMIN)
    user = db.session.get(User, user_id)
    if not user:
        raise NotFound('User not found')
    return user


def update_user(ctx, user_id, data):
    """Apply the fields present in ``data``; absent keys are left as they are."""
    ctx.require(ADMIN)

    if data.get('role') and data['role'] not in User.ROLES:
        raise ValidationError('Invalid role')

    with UnitOfWork():
        user = _get_user_for_update(user_id)

        email = _normalize_email(data.get('email'))
        if email and email != user.email:
            if User.query.filter(User.email == email, User.id != user.id).first():
                raise BusinessRuleViolation('A user with this email already exists')
            user.email = email

        if data.get('full_name'):
            user.full_name = data['full_name']
        if data.get('role'):
            user.role = data['role']
        if 'telegram_chat_id' in data:
            user.telegram_chat_id = data['telegram_chat_id'] or None
        if data.get('is_active') is not None:
            if user.id == ctx.user_id and not data['is_active']:
                raise BusinessRuleViolation('You cannot deactivate your own account')
            user.is_active = bool(data['is_active'])
        if data.get('password'):
            user.set_password(data['password'])

    return user


def delete_user(ctx, user_id):
    ctx.require(ADMIN)

    if user_id == ctx.user_id:
        raise BusinessRuleViolation('You cannot delete your own account')

    with UnitOfWork() as uow:
        user = _get_user_for_update(user_id)

        counts = [
            (Enrollment.query.filter_by(student_id=user.id).count(), 'enrollment(s)'),
            (Payment.query.filter_by(payer_id=user.id).count(), 'payment(s)'),
            (MentorAssignment.query.filter_by(mentor_id=user.id).count(), 'mentor assignment(s)'),
            (MentorAssignment.query.filter_by(student_id=user.id).count(), 'student assignment(s)'),
        ]
        issues = [f'{count} {label}' for count, label in counts if count > 0]
        if issues:
            raise DependencyExists(
                f'Cannot delete user because they have related records: {", ".join(issues)}. '
                'Please remove these records first or deactivate the user instead.'
            )

        uow.delete(user)

    logger.info(f'User {user_id} deleted')
