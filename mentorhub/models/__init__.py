from mentorhub.models.user import User
from mentorhub.models.course import Course
from mentorhub.models.enrollment import Enrollment
from mentorhub.models.payment import Payment
from mentorhub.models.assignment import MentorAssignment
from mentorhub.models.discount import Discount, DiscountApplication
from mentorhub.models.notification import Notification
from mentorhub.models.audit_log import AuditLog

__all__ = [
    'User', 'Course', 'Enrollment', 'Payment', 'MentorAssignment',
    'Discount', 'DiscountApplication', 'Notification', 'AuditLog'
]
