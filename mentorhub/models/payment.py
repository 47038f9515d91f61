from mentorhub import db
from mentorhub.utils.helpers import utc_now, isoformat, money

class Payment(db.Model):
    __tablename__ = 'payments'

    PENDING = 'PENDING'
    COMPLETED = 'COMPLETED'
    FAILED = 'FAILED'
    TERMINAL_STATUSES = (COMPLETED, FAILED)

    id = db.Column(db.Integer, primary_key=True)
    enrollment_id = db.Column(db.Integer, db.ForeignKey('enrollments.id'), nullable=False, index=True)
    assignment_id = db.Column(db.Integer, db.ForeignKey('mentor_assignments.id'), index=True)
    payer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    mentor_commission = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    platform_fee = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    status = db.Column(db.String(20), nullable=False, default=PENDING)
    description = db.Column(db.String(255))
    gateway_reference = db.Column(db.String(255), unique=True)
    due_date = db.Column(db.DateTime)
    paid_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=utc_now)
    updated_at = db.Column(db.DateTime, default=utc_now, onupdate=utc_now)

    payer = db.relationship('User', foreign_keys=[payer_id])

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    def to_dict(self):
        return {
            'id': self.id,
            'enrollment_id': self.enrollment_id,
            'assignment_id': self.assignment_id,
            'payer_id': self.payer_id,
            'amount': money(self.amount),
            'mentor_commission': money(self.mentor_commission),
            'platform_fee': money(self.platform_fee),
            'status': self.status,
            'description': self.description,
            'gateway_reference': self.gateway_reference,
            'due_date': isoformat(self.due_date),
            'paid_at': isoformat(self.paid_at),
            'created_at': isoformat(self.created_at)
        }

    def __repr__(self):
        return f'<Payment {self.amount} - Enrollment {self.enrollment_id} ({self.status})>'
