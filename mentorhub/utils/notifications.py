import asyncio
import logging
import threading
from functools import wraps
from flask import current_app
from telegram import Bot
from telegram.constants import ParseMode
from mentorhub import db
from mentorhub.models import Notification, User, Enrollment, Payment
from mentorhub.utils.helpers import money

logger = logging.getLogger(__name__)

async def send_telegram_notification_async(chat_id: int, message: str, bot_token: str):
    try:
        bot = Bot(token=bot_token)
        result = await bot.send_message(
            chat_id=chat_id,
            text=message,
            parse_mode=ParseMode.MARKDOWN
        )
        return result.message_id
    except Exception as e:
        logger.error(f"Error sending notification to {chat_id}: {e}")
        return None


def deliver_telegram(app, notification_id, chat_id, message, bot_token):
    with app.app_context():
        try:
            message_id = asyncio.run(send_telegram_notification_async(chat_id, message, bot_token))
            if message_id:
                notification = db.session.get(Notification, notification_id)
                if notification:
                    notification.mark_telegram_delivered(message_id)
        except Exception as e:
            logger.error(f"Error delivering telegram notification {notification_id}: {e}")


def create_notification(user_id, title, message, notification_type):
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        notification_type=notification_type
    )
    db.session.add(notification)
    db.session.commit()

    user = db.session.get(User, user_id)
    bot_token = current_app.config.get('TELEGRAM_BOT_TOKEN')
    if bot_token and user and user.telegram_chat_id:
        thread = threading.Thread(
            target=deliver_telegram,
            args=(current_app._get_current_object(), notification.id, user.telegram_chat_id,
                  f"🔔 *{title}*\n\n{message}", bot_token),
            daemon=True
        )
        thread.start()

    return notification


def safe_notify(func):
    """Run a notification sender without letting its failure reach the caller."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            logger.error(f"Notification {func.__name__} failed: {e}")
            db.session.rollback()
            return None
    return wrapper


@safe_notify
def send_enrollment_confirmation(enrollment_id):
    enrollment = db.session.get(Enrollment, enrollment_id)
    if not enrollment:
        return None

    title = "Enrollment confirmed"
    message = f"You are now enrolled in {enrollment.course.title}.\n\n"
    message += f"💰 Total: {money(enrollment.total_amount):,.2f}\n"
    message += f"💳 Paid: {money(enrollment.paid_amount):,.2f}\n"

    return create_notification(enrollment.student_id, title, message, 'enrollment_confirmed')


@safe_notify
def send_payment_received_notification(payment_id):
    payment = db.session.get(Payment, payment_id)
    if not payment:
        return None

    enrollment = payment.enrollment
    title = "Payment received"
    message = f"We received your payment for {enrollment.course.title}.\n\n"
    message += f"💰 Amount: {money(payment.amount):,.2f}\n"
    message += f"📊 Remaining: {money(enrollment.remaining_amount):,.2f}\n"

    return create_notification(payment.payer_id, title, message, 'payment_received')


@safe_notify
def send_payment_reminder_notification(payment_id):
    payment = db.session.get(Payment, payment_id)
    if not payment or payment.status != Payment.PENDING:
        return None

    enrollment = payment.enrollment
    title = "Payment reminder"
    message = f"A payment for {enrollment.course.title} is still pending.\n\n"
    message += f"💰 Amount: {money(payment.amount):,.2f}\n"
    if payment.due_date:
        message += f"📅 Due: {payment.due_date.strftime('%Y-%m-%d')}\n"

    return create_notification(payment.payer_id, title, message, 'payment_reminder')
