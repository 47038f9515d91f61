from flask import Blueprint, jsonify
from flask_login import current_user
from mentorhub.models import MentorAssignment, Payment
from mentorhub.services.ledger import ZERO, to_amount
from mentorhub.utils.decorators import role_required
from mentorhub.utils.helpers import money

bp = Blueprint('mentor', __name__, url_prefix='/mentor')

@bp.route('/students')
@role_required('mentor')
def students():
    my_assignments = MentorAssignment.query.filter_by(mentor_id=current_user.id).all()
    return jsonify({'assignments': [a.to_dict(include_relations=True) for a in my_assignments]})

@bp.route('/payments')
@role_required('mentor')
def payments():
    my_payments = Payment.query.join(MentorAssignment, Payment.assignment_id == MentorAssignment.id).filter(
        MentorAssignment.mentor_id == current_user.id
    ).order_by(Payment.created_at.desc(), Payment.id.desc()).all()

    earned = sum((to_amount(p.mentor_commission) for p in my_payments if p.status == Payment.COMPLETED), ZERO)
    return jsonify({
        'payments': [p.to_dict() for p in my_payments],
        'totalCommission': money(earned)
    })
