from mentorhub import db
from mentorhub.utils.helpers import utc_now, isoformat

class Notification(db.Model):
    __tablename__ = 'notifications'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    notification_type = db.Column(db.String(50), nullable=False)
    is_read = db.Column(db.Boolean, default=False)
    telegram_delivered = db.Column(db.Boolean, default=False)
    telegram_delivered_at = db.Column(db.DateTime, nullable=True)
    telegram_message_id = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, default=utc_now)

    user = db.relationship('User', backref=db.backref('notifications', lazy='dynamic', cascade='all, delete-orphan'))

    def mark_telegram_delivered(self, message_id=None):
        self.telegram_delivered = True
        self.telegram_delivered_at = utc_now()
        if message_id:
            self.telegram_message_id = message_id
        db.session.commit()

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'message': self.message,
            'notification_type': self.notification_type,
            'is_read': self.is_read,
            'telegram_delivered': self.telegram_delivered,
            'created_at': isoformat(self.created_at)
        }

    def __repr__(self):
        return f'<Notification {self.title}>'
