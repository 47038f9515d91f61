from types import SimpleNamespace

import pytest

from conftest import ctx_for, login, reload
from mentorhub.models import Notification, User
from mentorhub.services import assignments, reconciliation, users
from mentorhub.services.errors import (BusinessRuleViolation, DependencyExists,
                                       NotFound, Unauthorized, ValidationError)
from mentorhub.utils.notifications import create_notification


def test_create_user_normalizes_email(admin_ctx):
    user = users.create_user(admin_ctx, ' New.Mentor@Example.com ', 'New Mentor', User.MENTOR, 'pw123456')
    assert user.email == 'new.mentor@example.com'
    assert user.check_password('pw123456')


def test_create_user_rejects_duplicate_email(admin_ctx, make_user):
    existing = make_user(role=User.STUDENT)
    with pytest.raises(BusinessRuleViolation):
        users.create_user(admin_ctx, existing.email.upper(), 'Copy', User.STUDENT, 'pw123456')


def test_create_user_rejects_unknown_role(admin_ctx):
    with pytest.raises(ValidationError):
        users.create_user(admin_ctx, 'x@example.com', 'X', 'superuser', 'pw123456')


def test_update_user(admin_ctx, make_user):
    user = make_user(role=User.STUDENT)

    updated = users.update_user(admin_ctx, user.id, {
        'full_name': 'Renamed',
        'role': User.MENTOR,
        'is_active': False,
        'password': 'changed99'
    })

    assert updated.full_name == 'Renamed'
    assert updated.role == User.MENTOR
    assert updated.is_active is False
    assert updated.check_password('changed99')


def test_update_user_keeps_email_unique(admin_ctx, make_user):
    first = make_user(role=User.STUDENT)
    second = make_user(role=User.STUDENT)
    with pytest.raises(BusinessRuleViolation):
        users.update_user(admin_ctx, second.id, {'email': first.email})
    assert reload(User, second.id).email != first.email


def test_admin_cannot_deactivate_themselves(admin_ctx):
    with pytest.raises(BusinessRuleViolation):
        users.update_user(admin_ctx, admin_ctx.user_id, {'is_active': False})
    assert reload(User, admin_ctx.user_id).is_active is True


def test_delete_user(admin_ctx, make_user):
    user = make_user(role=User.MENTOR)
    user_id = user.id
    create_notification(user_id, 'Welcome', 'Hello', 'general')

    users.delete_user(admin_ctx, user_id)

    assert reload(User, user_id) is None
    assert Notification.query.filter_by(user_id=user_id).count() == 0


def test_admin_cannot_delete_themselves(admin_ctx):
    with pytest.raises(BusinessRuleViolation, match='your own account'):
        users.delete_user(admin_ctx, admin_ctx.user_id)


def test_delete_missing_user(admin_ctx):
    with pytest.raises(NotFound):
        users.delete_user(admin_ctx, 4040)


def test_delete_user_with_related_records_is_refused(admin_ctx, make_user, make_course):
    student = make_user(role=User.STUDENT)
    mentor = make_user(role=User.MENTOR)
    enrollment, _ = reconciliation.create_enrollment(
        admin_ctx, student.id, make_course().id, paid_amount='100'
    )
    assignments.create_assignment(admin_ctx, mentor.id, enrollment.id)

    with pytest.raises(DependencyExists) as excinfo:
        users.delete_user(admin_ctx, student.id)
    message = excinfo.value.message
    assert '1 enrollment(s)' in message
    assert '1 payment(s)' in message
    assert '1 student assignment(s)' in message

    with pytest.raises(DependencyExists, match='1 mentor assignment'):
        users.delete_user(admin_ctx, mentor.id)

    assert reload(User, student.id) is not None
    assert reload(User, mentor.id) is not None


def test_user_routes(app, client, make_user):
    with app.app_context():
        admin = make_user(role=User.ADMIN)
        admin = SimpleNamespace(id=admin.id, email=admin.email)
        student_id = make_user(role=User.STUDENT).id

    login(client, admin)

    response = client.get(f'/admin/users/{student_id}')
    assert response.status_code == 200
    assert response.get_json()['enrollments'] == []

    response = client.put(f'/admin/users/{student_id}', json={'full_name': 'Updated Name'})
    assert response.status_code == 200
    assert response.get_json()['full_name'] == 'Updated Name'

    response = client.delete(f'/admin/users/{admin.id}')
    assert response.status_code == 400

    response = client.delete(f'/admin/users/{student_id}')
    assert response.status_code == 200
    assert client.get(f'/admin/users/{student_id}').status_code == 404


def test_only_admins_manage_users(app_ctx, make_user):
    student = make_user(role=User.STUDENT)
    other = make_user(role=User.STUDENT)
    with pytest.raises(Unauthorized):
        users.delete_user(ctx_for(student), other.id)
    assert reload(User, other.id) is not None
