from mentorhub import db
from mentorhub.utils.helpers import utc_now, isoformat, money

class Enrollment(db.Model):
    __tablename__ = 'enrollments'

    ACTIVE = 'ACTIVE'
    COMPLETED = 'COMPLETED'
    CANCELLED = 'CANCELLED'
    STATUSES = (ACTIVE, COMPLETED, CANCELLED)

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=ACTIVE)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    paid_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    start_date = db.Column(db.DateTime, default=utc_now)
    end_date = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=utc_now)
    updated_at = db.Column(db.DateTime, default=utc_now, onupdate=utc_now)

    __table_args__ = (db.UniqueConstraint('student_id', 'course_id', name='unique_student_course'),)

    student = db.relationship('User', foreign_keys=[student_id], backref=db.backref('enrollments', lazy='dynamic'))
    payments = db.relationship('Payment', backref='enrollment', lazy='dynamic')
    assignments = db.relationship('MentorAssignment', backref='enrollment', lazy='dynamic')
    discount_applications = db.relationship('DiscountApplication', backref='enrollment', lazy='dynamic',
                                            cascade='all, delete-orphan')

    @property
    def remaining_amount(self):
        return self.total_amount - self.paid_amount

    @property
    def is_paid(self):
        return self.paid_amount >= self.total_amount

    def derive_status(self, requested=None):
        """Status after a balance change; CANCELLED sticks, the rest follows paid vs total."""
        if requested == self.CANCELLED or (requested is None and self.status == self.CANCELLED):
            return self.CANCELLED
        return self.COMPLETED if self.is_paid else self.ACTIVE

    def to_dict(self, include_relations=False):
        data = {
            'id': self.id,
            'student_id': self.student_id,
            'course_id': self.course_id,
            'status': self.status,
            'total_amount': money(self.total_amount),
            'paid_amount': money(self.paid_amount),
            'remaining_amount': money(self.remaining_amount),
            'start_date': isoformat(self.start_date),
            'end_date': isoformat(self.end_date),
            'created_at': isoformat(self.created_at)
        }
        if include_relations:
            from mentorhub.models.payment import Payment
            data['student'] = self.student.to_dict() if self.student else None
            data['course'] = self.course.to_dict() if self.course else None
            data['payments'] = [p.to_dict() for p in self.payments.order_by(Payment.paid_at.desc(), Payment.id.desc())]
            data['assignments'] = [a.to_dict() for a in self.assignments]
        return data

    def __repr__(self):
        return f'<Enrollment Student:{self.student_id} Course:{self.course_id}>'
