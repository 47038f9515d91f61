import os

basedir = os.path.abspath(os.path.dirname(__file__))

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///' + os.path.join(basedir, 'mentorhub.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False

    # Ledger
    MENTOR_COMMISSION_RATE = os.environ.get('MENTOR_COMMISSION_RATE', '0.37')
    PLATFORM_FEE_RATE = os.environ.get('PLATFORM_FEE_RATE', '0.03')
    DEFAULT_ASSIGNMENT_COMMISSION = float(os.environ.get('DEFAULT_ASSIGNMENT_COMMISSION', '37.0'))
    # 'collapse' rewrites history into one payment, 'adjust' appends a negative entry
    LEDGER_DECREASE_STRATEGY = os.environ.get('LEDGER_DECREASE_STRATEGY', 'collapse')
    PAYMENT_DUE_DAYS = int(os.environ.get('PAYMENT_DUE_DAYS', '7'))

    PAYMENT_WEBHOOK_SECRET = os.environ.get('PAYMENT_WEBHOOK_SECRET', '')
    PAYMENT_WEBHOOK_TOLERANCE = int(os.environ.get('PAYMENT_WEBHOOK_TOLERANCE', '300'))

    TELEGRAM_BOT_TOKEN = os.environ.get('TELEGRAM_BOT_TOKEN', '')

    SCHEDULER_ENABLED = os.environ.get('SCHEDULER_ENABLED', 'True').lower() == 'true'
    PAYMENT_REMINDER_TIME = os.environ.get('PAYMENT_REMINDER_TIME', '09:00')
    PAYMENT_REMINDER_DAYS_BEFORE = int(os.environ.get('PAYMENT_REMINDER_DAYS_BEFORE', '3'))

    DEFAULT_ADMIN_EMAIL = os.environ.get('DEFAULT_ADMIN_EMAIL', '')
    DEFAULT_ADMIN_PASSWORD = os.environ.get('DEFAULT_ADMIN_PASSWORD', '')


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'testing-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    LEDGER_DECREASE_STRATEGY = 'collapse'
    PAYMENT_WEBHOOK_SECRET = 'whsec_testing'
    TELEGRAM_BOT_TOKEN = ''
    SCHEDULER_ENABLED = False
    DEFAULT_ADMIN_EMAIL = ''
    DEFAULT_ADMIN_PASSWORD = ''
