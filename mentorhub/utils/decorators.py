from functools import wraps
from flask import jsonify, request
from flask_login import current_user
from mentorhub.services.context import RequestContext

def role_required(*roles):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return jsonify({'error': 'Unauthorized'}), 401

            if current_user.role not in roles:
                return jsonify({'error': 'Unauthorized'}), 401

            return f(*args, **kwargs)
        return decorated_function
    return decorator


def request_context():
    """Principal for the current request, handed to the service layer explicitly."""
    return RequestContext.for_user(current_user, request)


def json_body():
    return request.get_json(silent=True) or {}
