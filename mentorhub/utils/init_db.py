from flask import current_app
from mentorhub import db
from mentorhub.models import User
import logging

logger = logging.getLogger(__name__)

def initialize_database():
    seed_default_admin()
    logger.info("Database initialization completed successfully")


def seed_default_admin():
    email = current_app.config.get('DEFAULT_ADMIN_EMAIL')
    password = current_app.config.get('DEFAULT_ADMIN_PASSWORD')
    if not email or not password:
        return None

    if User.query.filter_by(role=User.ADMIN).first():
        return None

    admin = User(email=email.lower(), full_name='Administrator', role=User.ADMIN, is_active=True)
    admin.set_password(password)
    db.session.add(admin)
    db.session.commit()
    logger.info(f"Default admin {admin.email} created")
    return admin
