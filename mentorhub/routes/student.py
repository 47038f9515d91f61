from flask import Blueprint, jsonify
from flask_login import current_user
from mentorhub.models import Enrollment, Notification, Payment
from mentorhub.utils.decorators import role_required

bp = Blueprint('student', __name__, url_prefix='/student')

@bp.route('/enrollments')
@role_required('student')
def enrollments():
    my_enrollments = Enrollment.query.filter_by(student_id=current_user.id).order_by(Enrollment.created_at.desc()).all()
    return jsonify({'enrollments': [e.to_dict() for e in my_enrollments]})

@bp.route('/payments')
@role_required('student')
def payments():
    my_payments = Payment.query.join(Enrollment).filter(
        Enrollment.student_id == current_user.id
    ).order_by(Payment.created_at.desc(), Payment.id.desc()).all()
    return jsonify({'payments': [p.to_dict() for p in my_payments]})

@bp.route('/notifications')
@role_required('student')
def notifications():
    recent = current_user.notifications.order_by(Notification.id.desc()).limit(50).all()
    return jsonify({'notifications': [n.to_dict() for n in recent]})
