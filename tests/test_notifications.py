from datetime import timedelta

import pytest

from conftest import ctx_for, reload
from mentorhub import db
from mentorhub.models import Notification, Payment, User
from mentorhub.services import reconciliation
from mentorhub.utils import notifications, scheduler
from mentorhub.utils.helpers import utc_now


@pytest.fixture
def student(app_ctx, make_user):
    return make_user(role=User.STUDENT, telegram_chat_id=4242)


@pytest.fixture
def enrollment(admin_ctx, student, make_course):
    enrollment, _ = reconciliation.create_enrollment(admin_ctx, student.id, make_course(price='1000').id)
    return enrollment


class RecordingThread:
    started = []

    def __init__(self, target, args, daemon):
        self.target = target
        self.args = args
        self.daemon = daemon

    def start(self):
        RecordingThread.started.append(self.args)


def test_notification_is_stored_without_telegram(enrollment, student):
    notification = Notification.query.filter_by(user_id=student.id).one()
    assert notification.title == 'Enrollment confirmed'
    assert notification.telegram_delivered is False


def test_telegram_delivery_runs_in_background(app_ctx, student, monkeypatch):
    RecordingThread.started = []
    app_ctx.config['TELEGRAM_BOT_TOKEN'] = 'token'
    monkeypatch.setattr(notifications.threading, 'Thread', RecordingThread)

    notification = notifications.create_notification(student.id, 'Hello', 'World', 'general')

    assert len(RecordingThread.started) == 1
    _, notification_id, chat_id, message, token = RecordingThread.started[0]
    assert notification_id == notification.id
    assert chat_id == 4242
    assert 'Hello' in message
    assert token == 'token'


def test_telegram_skipped_without_chat_id(app_ctx, make_user, monkeypatch):
    RecordingThread.started = []
    app_ctx.config['TELEGRAM_BOT_TOKEN'] = 'token'
    monkeypatch.setattr(notifications.threading, 'Thread', RecordingThread)
    user = make_user(role=User.STUDENT)

    notifications.create_notification(user.id, 'Hello', 'World', 'general')
    assert RecordingThread.started == []


def test_failed_delivery_is_not_marked(app_ctx, student, monkeypatch):
    async def no_message(chat_id, message, bot_token):
        return None

    monkeypatch.setattr(notifications, 'send_telegram_notification_async', no_message)
    notification = notifications.create_notification(student.id, 'Hello', 'World', 'general')

    notifications.deliver_telegram(app_ctx, notification.id, 4242, 'Hello', 'token')
    assert reload(Notification, notification.id).telegram_delivered is False


def test_successful_delivery_is_marked(app_ctx, student, monkeypatch):
    async def delivered(chat_id, message, bot_token):
        return 77

    monkeypatch.setattr(notifications, 'send_telegram_notification_async', delivered)
    notification = notifications.create_notification(student.id, 'Hello', 'World', 'general')

    notifications.deliver_telegram(app_ctx, notification.id, 4242, 'Hello', 'token')
    notification = reload(Notification, notification.id)
    assert notification.telegram_delivered is True
    assert notification.telegram_message_id == 77


def test_notification_failure_does_not_break_enrollment(admin_ctx, make_user, make_course, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError('telegram is down')

    monkeypatch.setattr(notifications, 'create_notification', boom)
    student = make_user(role=User.STUDENT)

    enrollment, _ = reconciliation.create_enrollment(admin_ctx, student.id, make_course().id)

    assert enrollment.id is not None
    assert Notification.query.count() == 0


def test_reminder_only_for_pending_payments(enrollment, student, admin_ctx):
    pending = reconciliation.record_payment(ctx_for(student), enrollment.id, '100')
    completed = reconciliation.record_payment(admin_ctx, enrollment.id, '100', status=Payment.COMPLETED)

    assert notifications.send_payment_reminder_notification(pending.id) is not None
    assert notifications.send_payment_reminder_notification(completed.id) is None


def test_reminder_job_picks_payments_due_soon(app, enrollment, student):
    due_soon = reconciliation.record_payment(ctx_for(student), enrollment.id, '100')
    due_later = reconciliation.record_payment(ctx_for(student), enrollment.id, '100')
    due_soon.due_date = utc_now() + timedelta(days=1)
    due_later.due_date = utc_now() + timedelta(days=30)
    db.session.commit()

    assert scheduler.check_payment_reminders(app) == 1
    reminders = Notification.query.filter_by(notification_type='payment_reminder').all()
    assert len(reminders) == 1
    assert reminders[0].user_id == student.id


def test_reminder_window_follows_config(app, enrollment, student):
    reconciliation.record_payment(ctx_for(student), enrollment.id, '100')

    assert scheduler.check_payment_reminders(app) == 0
    app.config['PAYMENT_REMINDER_DAYS_BEFORE'] = 10
    assert scheduler.check_payment_reminders(app) == 1


def test_scheduler_disabled_in_testing(app):
    assert scheduler.init_scheduler(app) is None


def test_parse_reminder_time():
    assert scheduler._parse_time('18:30') == (18, 30)
    assert scheduler._parse_time(None) == (9, 0)
