from models import db, User, APPROVED, utcnow
from flask import Blueprint, jsonify, request, current_app
from werkzeug.exceptions import BadRequest, NotFound

from portal.files import read_file, send_stored_file
from portal.user_client import commit_new_account, email_taken, text_field


profiles = Blueprint('profiles', __name__)


def _email_arg():
    email = (request.args.get('email') or '').strip().lower()
    if not email:
        raise BadRequest('Email is required')
    return email


def _find(email, is_admin, message='User not found'):
    user = User.query.filter_by(email=email.strip().lower(), is_admin=is_admin).first()
    if user is None:
        raise NotFound(message)
    return user


def _rename(user, name, email):
    if email != user.email and email_taken(email):
        raise BadRequest('Email already exists')
    user.name = name
    user.email = email
    commit_new_account('Email already exists')
    current_app.logger.info('Profile of user %s updated', user.id)


def _update_profile(is_admin, not_found):
    data = request.get_json(silent=True) or {}
    current, name = text_field(data, 'currentEmail'), text_field(data, 'name')
    email = text_field(data, 'email').lower()
    if not current or not name or not email:
        raise BadRequest('All fields are required')
    _rename(_find(current, is_admin, not_found), name, email)
    return jsonify({'success': True, 'message': 'Profile updated successfully'})


@profiles.route('/api/user/profile', methods=['GET'])
def user_profile():
    user = _find(_email_arg(), is_admin=False)
    return jsonify({
        'success': True,
        'user': {
            'id': user.id,
            'name': user.name,
            'email': user.email,
            'status': user.status,
            'isVerified': user.is_verified,
            'hasProfilePicture': bool(user.picture_data),
        },
    })


@profiles.route('/api/user/profile', methods=['PUT'])
def update_user_profile():
    return _update_profile(is_admin=False, not_found='User not found')


@profiles.route('/api/admin/profile', methods=['GET'])
def admin_profile():
    user = _find(_email_arg(), is_admin=True, message='Admin user not found')
    return jsonify({
        'success': True,
        'user': {
            'id': user.id,
            'name': user.name,
            'email': user.email,
            'role': 'Administrator',
            'isAdmin': True,
            'status': user.status,
        },
    })


@profiles.route('/api/admin/profile', methods=['PUT'])
def update_admin_profile():
    return _update_profile(is_admin=True, not_found='Admin user not found')


@profiles.route('/api/users/profile', methods=['GET'])
def profile_with_uploads():
    email = _email_arg()
    user = User.query.filter_by(email=email).first()
    if user is None:
        raise NotFound('User not found')

    uploads = [
        {'id': u.id, 'filename': u.filename, 'contentType': u.content_type, 'uploadDate': u.upload_date.isoformat() if u.upload_date else None}
        for u in user.uploads
    ]
    return jsonify({
        'success': True,
        'user': {'id': user.id, 'name': user.name, 'email': user.email, 'isVerified': user.is_verified, 'uploads': uploads},
    })


@profiles.route('/api/users/list', methods=['GET'])
def list_users():
    users = User.query.filter_by(status=APPROVED, is_verified=True).order_by(User.name).all()
    return jsonify({'success': True, 'users': [{'name': u.name, 'email': u.email} for u in users]})


@profiles.route('/api/users/<email>', methods=['GET'])
def get_by_email(email):
    user = User.query.filter_by(email=email.strip().lower()).first()
    if user is None:
        raise NotFound('User not found')
    return jsonify({
        'success': True,
        'user': {'id': user.id, 'name': user.name, 'email': user.email, 'profilePicture': bool(user.picture_data)},
    })


@profiles.route('/api/users/<email>', methods=['PUT'])
def update_by_email(email):
    data = request.get_json(silent=True) or {}
    user = User.query.filter_by(email=email.strip().lower()).first()
    if user is None:
        raise NotFound('User not found')
    name, new_email = text_field(data, 'name'), text_field(data, 'email').lower()
    if not name or not new_email:
        raise BadRequest('Name and email are required')

    _rename(user, name, new_email)
    return jsonify({'success': True, 'user': {'id': user.id, 'name': user.name, 'email': user.email}})


@profiles.route('/api/users/profile-picture', methods=['POST'])
def upload_profile_picture():
    email = _email_arg()
    stored = read_file(
        request.files.get('profilePicture'),
        'No profile picture uploaded',
        allowed_types=['image/jpeg', 'image/png', 'image/gif', 'image/webp'],
        type_message='Only image files are allowed',
    )

    user = _find(email, is_admin=False)
    user.picture_name = stored.filename
    user.picture_content_type = stored.content_type
    user.picture_data = stored.data
    user.picture_uploaded_at = utcnow()
    db.session.commit()

    current_app.logger.info('Profile picture of user %s updated', user.id)
    return jsonify({'success': True, 'message': 'Profile picture updated successfully'})


@profiles.route('/api/users/profile-picture/<email>', methods=['GET'])
def profile_picture(email):
    user = User.query.filter_by(email=email.strip().lower(), is_admin=False).first()
    if user is None:
        raise NotFound('Profile picture not found')
    return send_stored_file(
        user.picture_data, user.picture_content_type, user.picture_name, 'Profile picture not found',
        as_attachment=False, max_age=86400,
    )
