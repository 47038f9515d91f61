from flask import Blueprint, jsonify, request
from mentorhub.models import Enrollment
from mentorhub.services import reconciliation
from mentorhub.utils.audit import log_admin_action
from mentorhub.utils.decorators import role_required, request_context, json_body

bp = Blueprint('enrollments', __name__, url_prefix='/enrollments')

@bp.route('', methods=['GET'])
@role_required('admin')
def list_enrollments():
    page = request.args.get('page', 1, type=int)
    limit = request.args.get('limit', 10, type=int)
    status = request.args.get('status')

    query = Enrollment.query
    if status:
        query = query.filter_by(status=status)
    pagination = query.order_by(Enrollment.created_at.desc(), Enrollment.id.desc()).paginate(
        page=page, per_page=limit, error_out=False
    )
    return jsonify({
        'enrollments': [e.to_dict() for e in pagination.items],
        'pagination': {
            'page': pagination.page,
            'limit': pagination.per_page,
            'totalCount': pagination.total,
            'totalPages': pagination.pages
        }
    })

@bp.route('', methods=['POST'])
@role_required('admin')
def create_enrollment():
    ctx = request_context()
    data = json_body()
    enrollment, payment = reconciliation.create_enrollment(
        ctx,
        student_id=data.get('studentId'),
        course_id=data.get('courseId'),
        total_amount=data.get('totalAmount'),
        paid_amount=data.get('paidAmount', 0),
        status=data.get('status')
    )
    log_admin_action(ctx, 'create', 'enrollment', enrollment.id, {
        'total_amount': enrollment.total_amount,
        'paid_amount': enrollment.paid_amount
    })
    return jsonify({
        'success': True,
        'enrollment': enrollment.to_dict(include_relations=True),
        'payment': payment.to_dict() if payment else None,
        'message': f'Student {enrollment.student.full_name} enrolled in {enrollment.course.title} successfully'
    }), 201

@bp.route('/<int:enrollment_id>', methods=['GET'])
@role_required('admin')
def view_enrollment(enrollment_id):
    enrollment = reconciliation.get_enrollment(request_context(), enrollment_id)
    return jsonify(enrollment.to_dict(include_relations=True))

@bp.route('/<int:enrollment_id>', methods=['PUT'])
@role_required('admin')
def edit_enrollment(enrollment_id):
    ctx = request_context()
    data = json_body()
    enrollment = reconciliation.reconcile_on_edit(
        ctx,
        enrollment_id,
        paid_amount=data.get('paidAmount'),
        total_amount=data.get('totalAmount'),
        status=data.get('status'),
        start_date=data.get('startDate')
    )
    log_admin_action(ctx, 'update', 'enrollment', enrollment_id, {
        'total_amount': enrollment.total_amount,
        'paid_amount': enrollment.paid_amount,
        'status': enrollment.status
    })
    return jsonify(enrollment.to_dict(include_relations=True))

@bp.route('/<int:enrollment_id>', methods=['DELETE'])
@role_required('admin')
def delete_enrollment(enrollment_id):
    ctx = request_context()
    reconciliation.delete_enrollment(ctx, enrollment_id)
    log_admin_action(ctx, 'delete', 'enrollment', enrollment_id)
    return jsonify({'message': 'Enrollment deleted successfully'})
