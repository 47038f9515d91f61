from mentorhub import db
from mentorhub.utils.helpers import utc_now, isoformat, money

class Discount(db.Model):
    __tablename__ = 'discounts'

    PERCENTAGE = 'PERCENTAGE'
    FIXED = 'FIXED'
    TYPES = (PERCENTAGE, FIXED)

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(50), unique=True, nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    type = db.Column(db.String(20), nullable=False)
    value = db.Column(db.Numeric(12, 2), nullable=False)
    min_amount = db.Column(db.Numeric(12, 2))
    max_discount = db.Column(db.Numeric(12, 2))
    usage_limit = db.Column(db.Integer)
    used_count = db.Column(db.Integer, nullable=False, default=0)
    start_date = db.Column(db.DateTime)
    end_date = db.Column(db.DateTime)
    is_active = db.Column(db.Boolean, default=True)
    terms_and_conditions = db.Column(db.Text)
    created_by_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    created_at = db.Column(db.DateTime, default=utc_now)
    updated_at = db.Column(db.DateTime, default=utc_now, onupdate=utc_now)

    created_by = db.relationship('User', foreign_keys=[created_by_id])
    applications = db.relationship('DiscountApplication', backref='discount', lazy='dynamic')

    @property
    def usage_exhausted(self):
        return self.usage_limit is not None and self.used_count >= self.usage_limit

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'description': self.description,
            'type': self.type,
            'value': money(self.value),
            'min_amount': money(self.min_amount),
            'max_discount': money(self.max_discount),
            'usage_limit': self.usage_limit,
            'used_count': self.used_count,
            'start_date': isoformat(self.start_date),
            'end_date': isoformat(self.end_date),
            'is_active': self.is_active,
            'terms_and_conditions': self.terms_and_conditions,
            'created_by_id': self.created_by_id,
            'created_at': isoformat(self.created_at),
            'applications_count': self.applications.count()
        }

    def __repr__(self):
        return f'<Discount {self.code}>'


class DiscountApplication(db.Model):
    __tablename__ = 'discount_applications'

    id = db.Column(db.Integer, primary_key=True)
    discount_id = db.Column(db.Integer, db.ForeignKey('discounts.id'), nullable=False)
    enrollment_id = db.Column(db.Integer, db.ForeignKey('enrollments.id'), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    applied_by_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    created_at = db.Column(db.DateTime, default=utc_now)

    __table_args__ = (db.UniqueConstraint('discount_id', 'enrollment_id', name='unique_discount_enrollment'),)

    applied_by = db.relationship('User', foreign_keys=[applied_by_id])

    def to_dict(self):
        return {
            'id': self.id,
            'discount_id': self.discount_id,
            'enrollment_id': self.enrollment_id,
            'amount': money(self.amount),
            'applied_by_id': self.applied_by_id,
            'created_at': isoformat(self.created_at)
        }

    def __repr__(self):
        return f'<DiscountApplication {self.discount_id} -> {self.enrollment_id}>'
