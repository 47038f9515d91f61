from flask import Blueprint, jsonify
from flask_login import login_user, logout_user, current_user, login_required
from mentorhub.models import User
from mentorhub.utils.decorators import json_body

bp = Blueprint('auth', __name__, url_prefix='/auth')

@bp.route('/login', methods=['POST'])
def login():
    data = json_body()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''

    if not email or not password:
        return jsonify({'error': 'Email and password are required'}), 400

    user = User.query.filter_by(email=email).first()

    if not user or not user.check_password(password):
        return jsonify({'error': 'Invalid credentials'}), 401

    if not user.is_active:
        return jsonify({'error': 'Account is inactive'}), 401

    login_user(user, remember=bool(data.get('remember')))
    return jsonify({'user': user.to_dict()})

@bp.route('/me')
@login_required
def me():
    return jsonify({'user': current_user.to_dict()})

@bp.route('/logout', methods=['POST'])
def logout():
    logout_user()
    return jsonify({'message': 'Logged out'})
