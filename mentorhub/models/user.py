from mentorhub import db
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from mentorhub.utils.helpers import utc_now, isoformat

class User(UserMixin, db.Model):
    __tablename__ = 'users'

    ADMIN = 'admin'
    MENTOR = 'mentor'
    STUDENT = 'student'
    ROLES = (ADMIN, MENTOR, STUDENT)

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(100), nullable=False)
    role = db.Column(db.String(20), nullable=False)
    is_active = db.Column(db.Boolean, default=True)
    telegram_chat_id = db.Column(db.BigInteger)
    created_at = db.Column(db.DateTime, default=utc_now)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'full_name': self.full_name,
            'role': self.role,
            'is_active': self.is_active,
            'created_at': isoformat(self.created_at)
        }

    def __repr__(self):
        return f'<User {self.email}>'
