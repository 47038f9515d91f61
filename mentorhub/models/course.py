from mentorhub import db
from mentorhub.utils.helpers import utc_now, isoformat, money

class Course(db.Model):
    __tablename__ = 'courses'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    price = db.Column(db.Numeric(12, 2), nullable=False)
    duration = db.Column(db.Integer, nullable=False)
    level = db.Column(db.String(50))
    category = db.Column(db.String(100))
    is_active = db.Column(db.Boolean, default=True)
    created_by_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    created_at = db.Column(db.DateTime, default=utc_now)
    updated_at = db.Column(db.DateTime, default=utc_now, onupdate=utc_now)

    created_by = db.relationship('User', foreign_keys=[created_by_id])
    enrollments = db.relationship('Enrollment', backref='course', lazy='dynamic')
    assignments = db.relationship('MentorAssignment', backref='course', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'price': money(self.price),
            'duration': self.duration,
            'level': self.level,
            'category': self.category,
            'is_active': self.is_active,
            'created_at': isoformat(self.created_at),
            'enrollments_count': self.enrollments.count(),
            'assignments_count': self.assignments.count()
        }

    def __repr__(self):
        return f'<Course {self.title}>'
