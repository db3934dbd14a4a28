from functools import wraps

from flask import jsonify
from flask_jwt_extended import create_access_token, get_jwt, get_jwt_identity, jwt_required
from werkzeug.exceptions import Forbidden

from models import db, User, APPROVED


def issue_token(user):
    role = 'admin' if user.is_admin else 'user'
    return create_access_token(identity=str(user.id), additional_claims={'role': role})


def admin_required(fn):
    """Allow the request only for a bearer token of a still-approved administrator."""

    @wraps(fn)
    @jwt_required()
    def wrapper(*args, **kwargs):
        if get_jwt().get('role') != 'admin':
            raise Forbidden('Unauthorized')
        admin = db.session.get(User, int(get_jwt_identity()))
        if admin is None or not admin.is_admin or admin.status != APPROVED:
            raise Forbidden('Unauthorized')
        return fn(*args, **kwargs)

    return wrapper


def register_jwt_handlers(jwt):
    @jwt.unauthorized_loader
    def missing_token(reason):
        return jsonify({'success': False, 'message': reason}), 401

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return jsonify({'success': False, 'message': reason}), 401

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return jsonify({'success': False, 'message': 'Token has expired'}), 401
