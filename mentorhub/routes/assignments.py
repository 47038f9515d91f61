from flask import Blueprint, jsonify, request
from mentorhub.models import MentorAssignment
from mentorhub.services import assignments
from mentorhub.utils.audit import log_admin_action
from mentorhub.utils.decorators import role_required, request_context, json_body

bp = Blueprint('assignments', __name__, url_prefix='/assignments')

@bp.route('', methods=['GET'])
@role_required('admin')
def list_assignments():
    page = request.args.get('page', 1, type=int)
    limit = request.args.get('limit', 10, type=int)
    pagination = MentorAssignment.query.order_by(MentorAssignment.created_at.desc(), MentorAssignment.id.desc()).paginate(
        page=page, per_page=limit, error_out=False
    )
    return jsonify({
        'assignments': [a.to_dict() for a in pagination.items],
        'pagination': {
            'page': pagination.page,
            'limit': pagination.per_page,
            'totalCount': pagination.total,
            'totalPages': pagination.pages
        }
    })

@bp.route('', methods=['POST'])
@role_required('admin')
def create_assignment():
    ctx = request_context()
    data = json_body()
    assignment = assignments.create_assignment(
        ctx,
        mentor_id=data.get('mentorId'),
        enrollment_id=data.get('enrollmentId'),
        commission_rate=data.get('commissionRate')
    )
    log_admin_action(ctx, 'create', 'assignment', assignment.id, {'mentor_id': assignment.mentor_id})
    return jsonify(assignment.to_dict(include_relations=True)), 201

@bp.route('/<int:assignment_id>', methods=['GET'])
@role_required('admin')
def view_assignment(assignment_id):
    assignment = assignments.get_assignment(request_context(), assignment_id)
    return jsonify(assignment.to_dict(include_relations=True))

@bp.route('/<int:assignment_id>', methods=['PUT'])
@role_required('admin')
def edit_assignment(assignment_id):
    ctx = request_context()
    data = json_body()
    assignment = assignments.update_assignment(
        ctx, assignment_id, commission=data.get('commission'), status=data.get('status')
    )
    log_admin_action(ctx, 'update', 'assignment', assignment_id, {
        'commission': assignment.commission,
        'status': assignment.status
    })
    return jsonify(assignment.to_dict(include_relations=True))

@bp.route('/<int:assignment_id>', methods=['DELETE'])
@role_required('admin')
def delete_assignment(assignment_id):
    ctx = request_context()
    assignments.unassign(ctx, assignment_id)
    log_admin_action(ctx, 'delete', 'assignment', assignment_id)
    return jsonify({'message': 'Assignment deleted successfully'})

@bp.route('/<int:assignment_id>/reassign', methods=['PUT'])
@role_required('admin')
def reassign_mentor(assignment_id):
    ctx = request_context()
    data = json_body()
    action = data.get('action')

    if action == 'unassign':
        assignments.unassign(ctx, assignment_id)
        log_admin_action(ctx, 'unassign', 'assignment', assignment_id)
        return jsonify({'message': 'Mentor unassigned successfully', 'action': 'unassigned'})

    if action == 'reassign':
        assignment = assignments.reassign(ctx, assignment_id, data.get('newMentorId'))
        log_admin_action(ctx, 'reassign', 'assignment', assignment_id, {'mentor_id': assignment.mentor_id})
        return jsonify({
            'message': 'Mentor reassigned successfully',
            'assignment': assignment.to_dict(include_relations=True),
            'action': 'reassigned'
        })

    return jsonify({'error': 'Invalid action'}), 400
