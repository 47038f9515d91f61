import logging
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from datetime import timedelta
from mentorhub.models import Payment
from mentorhub.utils.notifications import send_payment_reminder_notification
from mentorhub.utils.helpers import utc_now

logger = logging.getLogger(__name__)

scheduler = None


def check_payment_reminders(app):
    with app.app_context():
        try:
            days_before = app.config.get('PAYMENT_REMINDER_DAYS_BEFORE', 3)
            cutoff = utc_now() + timedelta(days=days_before)

            payments = Payment.query.filter(
                Payment.status == Payment.PENDING,
                Payment.due_date.isnot(None),
                Payment.due_date <= cutoff
            ).all()

            sent = 0
            for payment in payments:
                if send_payment_reminder_notification(payment.id):
                    sent += 1
                    logger.info(f"Sent payment reminder for payment {payment.id}")

            logger.info(f"Payment reminder check completed. Sent {sent} reminders.")
            return sent

        except Exception as e:
            logger.error(f"Error in check_payment_reminders: {e}")
            return 0


def _parse_time(value):
    hour, minute = map(int, (value or '09:00').split(':'))
    return hour, minute


def init_scheduler(app):
    global scheduler

    if not app.config.get('SCHEDULER_ENABLED', False):
        return None

    if scheduler is None:
        scheduler = BackgroundScheduler(daemon=True)

        reminder_time = app.config.get('PAYMENT_REMINDER_TIME', '09:00')
        hour, minute = _parse_time(reminder_time)

        scheduler.add_job(
            func=check_payment_reminders,
            args=[app],
            trigger=CronTrigger(hour=hour, minute=minute),
            id='payment_reminder_job',
            name='Daily Payment Reminder',
            replace_existing=True
        )
        logger.info(f"Payment reminder scheduler initialized at {reminder_time}")

        scheduler.start()
        logger.info("Scheduler started successfully")

    return scheduler


def shutdown_scheduler():
    global scheduler

    if scheduler is not None:
        scheduler.shutdown()
        scheduler = None
        logger.info("Scheduler shut down successfully")
