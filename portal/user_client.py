from models import db, User, Upload, PENDING, REJECTED
from flask import Blueprint, jsonify, request, current_app
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import BadRequest, NotFound, Unauthorized

from portal.auth import issue_token
from portal.files import read_file


user_client = Blueprint('user_client', __name__)


def text_field(source, key):
    """Stripped string value of ``key``; anything that is not a string reads as empty."""
    value = source.get(key)
    return value.strip() if isinstance(value, str) else ''


def account_fields(source):
    name = text_field(source, 'name')
    email = text_field(source, 'email').lower()
    password = source.get('password')
    if not name or not email or not isinstance(password, str) or not password:
        raise BadRequest('Name, email and password are required')
    return name, email, password


def email_taken(email):
    return User.query.filter_by(email=email).first() is not None


def _duplicate_email(error):
    # sqlite reports the column, other backends the index name.
    reason = str(error.orig)
    return 'users.email' in reason or 'ix_users_email' in reason


def commit_new_account(message='User with this email already exists'):
    try:
        db.session.commit()
    except IntegrityError as error:
        db.session.rollback()
        if not _duplicate_email(error):
            raise
        raise BadRequest(message)


@user_client.route('/api/register', methods=['POST'])
def register():
    stored = read_file(request.files.get('file'), 'Credential file is required for registration')
    name, email, password = account_fields(request.form)
    if email_taken(email):
        raise BadRequest('User with this email already exists')

    user = User(name=name, email=email, is_admin=False, status=PENDING, is_verified=False)
    user.set_password(password)
    user.attach_file(stored)

    upload_id = request.form.get('uploadId')
    if upload_id:
        upload = db.session.get(Upload, int(upload_id)) if upload_id.isdigit() else None
        if upload is None:
            raise NotFound('Upload not found')
        if upload.user_id is not None:
            raise BadRequest('Upload already belongs to another user')
        upload.user = user
        user.upload_id = upload.id

    db.session.add(user)
    commit_new_account()

    current_app.logger.info('User %s registered, pending approval', user.id)
    return jsonify({
        'success': True,
        'message': 'Registration submitted for admin approval',
        'user': {'id': user.id, 'name': user.name, 'email': user.email, 'status': user.status},
    })


@user_client.route('/api/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    email = text_field(data, 'email').lower()
    user = User.query.filter_by(email=email, is_admin=False).first()
    if not user or not user.check_password(data.get('password') or ''):
        current_app.logger.warning('Failed login for %s', email)
        raise Unauthorized('Invalid credentials')

    if user.status == REJECTED:
        raise Unauthorized('Your account has been rejected. Please contact administrator.')
    if user.status == PENDING:
        raise Unauthorized('Your account is pending approval. Please wait for administrator approval.')

    current_app.logger.info('User %s logged in', user.id)
    return jsonify({
        'success': True,
        'token': issue_token(user),
        'user': {
            'id': user.id,
            'name': user.name,
            'email': user.email,
            'isVerified': user.is_verified,
            'status': user.status,
            'isAdmin': False,
            'role': 'user',
        },
    })
