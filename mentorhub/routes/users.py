from flask import Blueprint, jsonify, request
from mentorhub.models import User
from mentorhub.services import users
from mentorhub.utils.audit import log_admin_action
from mentorhub.utils.decorators import role_required, request_context, json_body

bp = Blueprint('users', __name__, url_prefix='/admin/users')

@bp.route('', methods=['GET'])
@role_required('admin')
def list_users():
    page = request.args.get('page', 1, type=int)
    limit = request.args.get('limit', 10, type=int)
    role = request.args.get('role')

    query = User.query
    if role:
        query = query.filter_by(role=role)
    pagination = query.order_by(User.created_at.desc(), User.id.desc()).paginate(
        page=page, per_page=limit, error_out=False
    )
    return jsonify({
        'users': [u.to_dict() for u in pagination.items],
        'pagination': {
            'page': pagination.page,
            'limit': pagination.per_page,
            'totalCount': pagination.total,
            'totalPages': pagination.pages
        }
    })

@bp.route('', methods=['POST'])
@role_required('admin')
def create_user():
    ctx = request_context()
    data = json_body()
    user = users.create_user(
        ctx,
        email=data.get('email'),
        full_name=data.get('full_name'),
        role=data.get('role'),
        password=data.get('password'),
        telegram_chat_id=data.get('telegram_chat_id')
    )
    log_admin_action(ctx, 'create', 'user', user.id, {'role': user.role})
    return jsonify(user.to_dict()), 201

@bp.route('/<int:user_id>', methods=['GET'])
@role_required('admin')
def view_user(user_id):
    user = users.get_user(request_context(), user_id)
    data = user.to_dict()
    data['enrollments'] = [e.to_dict() for e in user.enrollments]
    return jsonify(data)

@bp.route('/<int:user_id>', methods=['PUT'])
@role_required('admin')
def edit_user(user_id):
    ctx = request_context()
    user = users.update_user(ctx, user_id, json_body())
    log_admin_action(ctx, 'update', 'user', user_id, {'role': user.role, 'is_active': user.is_active})
    return jsonify(user.to_dict())

@bp.route('/<int:user_id>', methods=['DELETE'])
@role_required('admin')
def delete_user(user_id):
    ctx = request_context()
    users.delete_user(ctx, user_id)
    log_admin_action(ctx, 'delete', 'user', user_id)
    return jsonify({'message': 'User deleted successfully'})
