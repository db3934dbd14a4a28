from models import db, User, AdminRegister, PENDING, APPROVED
from flask import Blueprint, jsonify, request, current_app
from werkzeug.exceptions import BadRequest, NotFound, Unauthorized

from portal.approvals import apply_user_status, decide_admin_registration, validate_status
from portal.auth import admin_required, issue_token
from portal.files import read_file, send_stored_file
from portal.user_client import account_fields, commit_new_account, email_taken, text_field


admin_ops = Blueprint('admin_ops', __name__)


@admin_ops.route('/api/admin/login', methods=['POST'])
def admin_login():
    data = request.get_json(silent=True) or {}
    email = text_field(data, 'email').lower()
    user = User.query.filter_by(email=email, is_admin=True).first()
    if not user or not user.check_password(data.get('password') or ''):
        current_app.logger.warning('Failed admin login for %s', email)
        raise Unauthorized('Invalid admin credentials')
    if user.status != APPROVED:
        raise Unauthorized('Admin account not approved yet')

    current_app.logger.info('Admin %s logged in', user.id)
    return jsonify({
        'success': True,
        'token': issue_token(user),
        'user': {'id': user.id, 'email': user.email, 'name': user.name, 'isAdmin': True, 'role': 'admin'},
    })


@admin_ops.route('/api/admin/register', methods=['POST'])
def admin_register():
    stored = read_file(request.files.get('file'), 'Credential file is required for registration')
    name, email, password = account_fields(request.form)

    pending = AdminRegister.query.filter_by(email=email, status=PENDING).first()
    if pending or email_taken(email):
        raise BadRequest('User with this email already exists')

    registration = AdminRegister(name=name, email=email, status=PENDING)
    registration.set_password(password)
    registration.attach_file(stored)
    db.session.add(registration)
    commit_new_account()

    current_app.logger.info('Admin registration %s submitted for %s', registration.id, email)
    return jsonify({
        'success': True,
        'message': 'Admin registration submitted for review',
        'user': {'id': registration.id, 'name': registration.name, 'email': registration.email, 'status': registration.status},
    })


@admin_ops.route('/api/admin/registrations', methods=['GET'])
@admin_required
def list_registrations():
    registrations = AdminRegister.query.filter_by(status=PENDING).order_by(AdminRegister.id).all()
    return jsonify({'success': True, 'requests': [r.to_dict() for r in registrations]})


@admin_ops.route('/api/admin/registration/<int:registration_id>', methods=['PATCH'])
@admin_required
def decide_registration(registration_id):
    status = (request.get_json(silent=True) or {}).get('status')
    user = decide_admin_registration(registration_id, status)
    if user is not None:
        return jsonify({'success': True, 'message': 'Admin registration approved successfully', 'user': user.to_dict()})
    return jsonify({'success': True, 'message': f'Admin registration {status}'})


@admin_ops.route('/api/admin/registration/file/<int:registration_id>', methods=['GET'])
@admin_required
def registration_file(registration_id):
    registration = db.session.get(AdminRegister, registration_id)
    if registration is None:
        raise NotFound('File not found')
    return send_stored_file(registration.file_data, registration.file_content_type, registration.file_name)


@admin_ops.route('/api/admin/users', methods=['GET'])
@admin_required
def pending_users():
    users = User.query.filter_by(status=PENDING, is_admin=False).order_by(User.id).all()
    return jsonify({'success': True, 'users': [u.to_dict() for u in users]})


@admin_ops.route('/api/admin/users/all', methods=['GET'])
@admin_required
def all_users():
    users = User.query.order_by(User.id).all()
    return jsonify({'success': True, 'users': [u.to_dict() for u in users]})


def _get_user(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound('User not found')
    return user


def _name_field(data):
    name = text_field(data, 'name')
    if not name:
        raise BadRequest('Name cannot be empty')
    return name


def _email_field(data):
    email = text_field(data, 'email').lower()
    if not email:
        raise BadRequest('Email cannot be empty')
    return email


def _flag_field(data, key):
    value = data[key]
    if not isinstance(value, bool):
        raise BadRequest(f'{key} must be true or false')
    return value


def _change_email(user, email):
    if email != user.email and email_taken(email):
        raise BadRequest('Email already exists')
    user.email = email


@admin_ops.route('/api/admin/user/<int:user_id>', methods=['GET'])
@admin_required
def get_user(user_id):
    return jsonify({'success': True, 'user': _get_user(user_id).to_dict()})


@admin_ops.route('/api/admin/user/<int:user_id>', methods=['PATCH'])
@admin_required
def patch_user(user_id):
    """Partial update: any of ``name``, ``email`` and ``status``."""
    data = request.get_json(silent=True) or {}
    if 'status' in data:
        validate_status(data['status'])
    name = _name_field(data) if 'name' in data else None
    email = _email_field(data) if 'email' in data else None
    user = _get_user(user_id)

    if name is not None:
        user.name = name
    if email is not None:
        _change_email(user, email)
    if 'status' in data:
        apply_user_status(user, data['status'])
    commit_new_account('Email already exists')

    current_app.logger.info('User %s updated (%s)', user.id, ', '.join(sorted(data)))
    message = f'User {user.status} successfully' if 'status' in data else 'User updated successfully'
    return jsonify({'success': True, 'message': message, 'user': user.to_dict()})


@admin_ops.route('/api/admin/user/<int:user_id>', methods=['PUT'])
@admin_required
def put_user(user_id):
    """Full update; ``isVerified`` given explicitly overrides the status-derived flag."""
    data = request.get_json(silent=True) or {}
    missing = [field for field in ('name', 'email', 'status') if not data.get(field)]
    if missing:
        raise BadRequest(f'Missing required field(s): {", ".join(missing)}')
    validate_status(data['status'])
    name, email = _name_field(data), _email_field(data)
    flags = {key: _flag_field(data, key) for key in ('isVerified', 'isAdmin') if key in data}
    user = _get_user(user_id)

    user.name = name
    _change_email(user, email)
    apply_user_status(user, data['status'])
    if 'isVerified' in flags:
        user.is_verified = flags['isVerified']
    if 'isAdmin' in flags:
        user.is_admin = flags['isAdmin']
    commit_new_account('Email already exists')

    current_app.logger.info('User %s replaced', user.id)
    return jsonify({'success': True, 'message': 'User updated successfully', 'user': user.to_dict()})


@admin_ops.route('/api/admin/user/file/<int:user_id>', methods=['GET'])
@admin_required
def user_file(user_id):
    user = User.query.filter_by(id=user_id, is_admin=False).first()
    if user is None:
        raise NotFound('User credential file not found')
    return send_stored_file(user.file_data, user.file_content_type, user.file_name, 'User credential file not found')


def _create_approved(is_admin):
    data = request.get_json(silent=True) or {}
    name, email, password = account_fields(data)
    if email_taken(email):
        raise BadRequest('User with this email already exists')

    user = User(name=name, email=email, is_admin=is_admin, status=APPROVED, is_verified=True)
    user.set_password(password)
    db.session.add(user)
    commit_new_account()
    return user


@admin_ops.route('/api/create-user', methods=['POST'])
@admin_required
def create_user():
    user = _create_approved(is_admin=False)
    current_app.logger.info('Approved user %s created directly', user.id)
    return jsonify({'success': True, 'message': 'Regular user created successfully', 'user': user.to_dict()})


@admin_ops.route('/api/create-admin', methods=['POST'])
@admin_required
def create_admin():
    user = _create_approved(is_admin=True)
    current_app.logger.info('Approved admin %s created directly', user.id)
    return jsonify({'success': True, 'message': 'Admin user created successfully', 'admin': user.to_dict()})
