from flask import Blueprint, jsonify, request
from mentorhub.models import Course
from mentorhub.services import catalog
from mentorhub.utils.audit import log_admin_action
from mentorhub.utils.decorators import role_required, request_context, json_body

bp = Blueprint('courses', __name__, url_prefix='/courses')

@bp.route('', methods=['GET'])
@role_required('admin')
def list_courses():
    page = request.args.get('page', 1, type=int)
    limit = request.args.get('limit', 10, type=int)
    pagination = Course.query.order_by(Course.created_at.desc(), Course.id.desc()).paginate(
        page=page, per_page=limit, error_out=False
    )
    return jsonify({
        'courses': [c.to_dict() for c in pagination.items],
        'pagination': {
            'page': pagination.page,
            'limit': pagination.per_page,
            'totalCount': pagination.total,
            'totalPages': pagination.pages
        }
    })

@bp.route('', methods=['POST'])
@role_required('admin')
def create_course():
    ctx = request_context()
    course = catalog.create_course(ctx, json_body())
    log_admin_action(ctx, 'create', 'course', course.id)
    return jsonify(course.to_dict()), 201

@bp.route('/<int:course_id>', methods=['GET'])
@role_required('admin')
def view_course(course_id):
    course = catalog.get_course(request_context(), course_id)
    data = course.to_dict()
    data['enrollments'] = [e.to_dict() for e in course.enrollments]
    data['assignments'] = [a.to_dict() for a in course.assignments]
    return jsonify(data)

@bp.route('/<int:course_id>', methods=['PUT'])
@role_required('admin')
def edit_course(course_id):
    ctx = request_context()
    data = json_body()
    course = catalog.update_course(ctx, course_id, data)
    log_admin_action(ctx, 'update', 'course', course_id, {'price': course.price, 'is_active': course.is_active})
    return jsonify(course.to_dict())

@bp.route('/<int:course_id>', methods=['DELETE'])
@role_required('admin')
def delete_course(course_id):
    ctx = request_context()
    catalog.delete_course(ctx, course_id)
    log_admin_action(ctx, 'delete', 'course', course_id)
    return jsonify({'message': 'Course deleted successfully'})
