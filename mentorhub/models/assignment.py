from mentorhub import db
from mentorhub.utils.helpers import utc_now, isoformat, money

class MentorAssignment(db.Model):
    __tablename__ = 'mentor_assignments'

    ACTIVE = 'ACTIVE'
    INACTIVE = 'INACTIVE'
    COMPLETED = 'COMPLETED'
    STATUSES = (ACTIVE, INACTIVE, COMPLETED)

    id = db.Column(db.Integer, primary_key=True)
    mentor_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False)
    enrollment_id = db.Column(db.Integer, db.ForeignKey('enrollments.id'), nullable=False)
    commission = db.Column(db.Numeric(5, 2), nullable=False, default=37.0)
    status = db.Column(db.String(20), nullable=False, default=ACTIVE)
    created_at = db.Column(db.DateTime, default=utc_now)
    updated_at = db.Column(db.DateTime, default=utc_now, onupdate=utc_now)

    __table_args__ = (db.UniqueConstraint('mentor_id', 'enrollment_id', name='unique_mentor_enrollment'),)

    mentor = db.relationship('User', foreign_keys=[mentor_id])
    student = db.relationship('User', foreign_keys=[student_id])
    payments = db.relationship('Payment', backref='assignment', lazy='dynamic')

    def to_dict(self, include_relations=False):
        data = {
            'id': self.id,
            'mentor_id': self.mentor_id,
            'student_id': self.student_id,
            'course_id': self.course_id,
            'enrollment_id': self.enrollment_id,
            'commission': money(self.commission),
            'status': self.status,
            'created_at': isoformat(self.created_at)
        }
        if include_relations:
            data['mentor'] = self.mentor.to_dict() if self.mentor else None
            data['student'] = self.student.to_dict() if self.student else None
            data['course'] = self.course.to_dict() if self.course else None
            data['enrollment'] = self.enrollment.to_dict() if self.enrollment else None
            data['payments'] = [p.to_dict() for p in self.payments]
        return data

    def __repr__(self):
        return f'<MentorAssignment Mentor:{self.mentor_id} Enrollment:{self.enrollment_id}>'
