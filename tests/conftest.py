import itertools
from decimal import Decimal

import pytest

from config import TestingConfig
from mentorhub import create_app, db
from mentorhub.models import Course, User
from mentorhub.services.context import RequestContext

PASSWORD = 'secret123'

_emails = itertools.count(1)


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user():
    def _make(role=User.STUDENT, email=None, full_name=None, telegram_chat_id=None, is_active=True):
        user = User(
            email=email or f'{role}{next(_emails)}@example.com',
            full_name=full_name or f'Test {role.title()}',
            role=role,
            telegram_chat_id=telegram_chat_id,
            is_active=is_active
        )
        user.set_password(PASSWORD)
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def make_course():
    def _make(title='Python Fundamentals', price='100000', duration=30):
        course = Course(
            title=title,
            description='An introductory course',
            price=Decimal(price),
            duration=duration,
            level='beginner',
            category='programming'
        )
        db.session.add(course)
        db.session.commit()
        return course
    return _make


@pytest.fixture
def admin_ctx(app_ctx, make_user):
    admin = make_user(role=User.ADMIN)
    return RequestContext(user_id=admin.id, role=admin.role)


def ctx_for(user):
    return RequestContext(user_id=user.id, role=user.role)


def login(client, user):
    response = client.post('/auth/login', json={'email': user.email, 'password': PASSWORD})
    assert response.status_code == 200
    return response


def reload(model, pk):
    db.session.expire_all()
    return db.session.get(model, pk)
