"""Status transitions for users, uploads and admin registrations.

Every record kind shares the ``pending`` / ``approved`` / ``rejected`` status.
Transitions are triggered by an administrator only; repeating a transition is
accepted and leaves the data as it was. Multi-record side effects (creating a
User from an approved AdminRegister, cascading an Upload decision to its owner)
are committed in a single transaction.
"""
from flask import current_app
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import BadRequest, NotFound

from models import db, User, Upload, AdminRegister, STATUSES, APPROVED


def validate_status(status):
    if status not in STATUSES:
        raise BadRequest('Invalid status')
    return status


def apply_user_status(user, status):
    """Set the status on an already-loaded user without committing."""
    validate_status(status)
    user.status = status
    user.is_verified = status == APPROVED
    return user


def set_user_status(user_id, status):
    validate_status(status)
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound('User not found')

    apply_user_status(user, status)
    db.session.commit()
    current_app.logger.info('User %s marked %s', user.id, status)
    return user


def _find_user_by_email(email):
    return User.query.filter_by(email=email).first()


def _materialize(registration):
    user = User(
        name=registration.name,
        email=registration.email,
        password_hash=registration.password_hash,
        is_admin=True,
        is_verified=True,
        status=APPROVED,
    )
    user.file_name = registration.file_name
    user.file_content_type = registration.file_content_type
    user.file_data = registration.file_data
    user.file_uploaded_at = registration.file_uploaded_at
    return user


def decide_admin_registration(registration_id, status):
    """Approve, reject or reset a pending administrator registration.

    Approval promotes the registration into the users table: a new approved
    admin User is created unless one already exists for the email, and the
    registration row is removed, all in one commit. When a concurrent approval
    has already inserted the User the unique email index rejects the second
    insert; the registration is then simply removed, so the end state is the
    same either way. Returns the User for approvals and ``None`` otherwise.
    """
    validate_status(status)
    registration = db.session.get(AdminRegister, registration_id)
    if registration is None:
        raise NotFound('Admin registration not found')

    if status != APPROVED:
        registration.status = status
        db.session.commit()
        current_app.logger.info('Admin registration %s marked %s', registration_id, status)
        return None

    email = registration.email
    user = _find_user_by_email(email)
    if user is None:
        user = _materialize(registration)
        db.session.add(user)
    else:
        current_app.logger.warning('Admin registration %s approved for existing user %s', registration_id, user.id)
    db.session.delete(registration)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        current_app.logger.warning('Concurrent approval for %s detected, removing registration %s', email, registration_id)
        AdminRegister.query.filter_by(id=registration_id).delete()
        db.session.commit()
        user = _find_user_by_email(email)

    current_app.logger.info('Admin registration %s approved as user %s', registration_id, user.id)
    return user


def _cascade_verification(owner, upload, status):
    if upload.user_id is None:
        upload.user_id = owner.id
        if owner.upload_id is None:
            owner.upload_id = upload.id
    owner.is_verified = status == APPROVED


def set_upload_status(upload_id, status, user_id=None):
    """Decide an upload and carry the verification flag over to its owner.

    The owner is ``user_id`` when given, otherwise the upload's own owner. A
    ``user_id`` only links an unowned upload; naming someone other than the
    current owner is a ``BadRequest``. The upload and owner writes are committed
    together, and an unknown owner aborts the whole decision with ``NotFound``.
    """
    validate_status(status)
    upload = db.session.get(Upload, upload_id)
    if upload is None:
        raise NotFound('Upload not found')

    if user_id is not None and upload.user_id is not None and user_id != upload.user_id:
        raise BadRequest('Upload already belongs to another user')
    owner_id = user_id if user_id is not None else upload.user_id
    owner = None
    if owner_id is not None:
        owner = db.session.get(User, owner_id)
        if owner is None:
            raise NotFound('User not found')

    upload.status = status
    upload.is_verified = status == APPROVED
    if owner is not None:
        _cascade_verification(owner, upload, status)

    db.session.commit()
    current_app.logger.info('Upload %s marked %s (owner %s)', upload.id, status, owner_id)
    return upload
