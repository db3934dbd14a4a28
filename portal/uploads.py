from models import db, Upload, PENDING
from flask import Blueprint, jsonify, request, current_app
from werkzeug.exceptions import BadRequest, NotFound

from portal.approvals import set_upload_status
from portal.auth import admin_required
from portal.files import read_file, send_stored_file


uploads = Blueprint('uploads', __name__)


def _get_upload(upload_id):
    upload = db.session.get(Upload, upload_id)
    if upload is None:
        raise NotFound('Upload not found')
    return upload


@uploads.route('/api/upload', methods=['POST'])
def upload_file():
    stored = read_file(request.files.get('file'))
    upload = Upload(filename=stored.filename, content_type=stored.content_type, data=stored.data, status=PENDING)
    db.session.add(upload)
    db.session.commit()

    current_app.logger.info('Upload %s stored (%s, %d bytes)', upload.id, upload.content_type, len(stored.data))
    return jsonify({
        'success': True,
        'message': 'File uploaded successfully',
        'file': upload.to_dict(),
    })


@uploads.route('/api/uploads/pending', methods=['GET'])
@admin_required
def pending_uploads():
    pending = Upload.query.filter_by(status=PENDING).order_by(Upload.id).all()
    return jsonify({'success': True, 'uploads': [u.to_dict() for u in pending]})


@uploads.route('/api/upload/verify/<int:upload_id>', methods=['GET'])
def verify_upload(upload_id):
    upload = _get_upload(upload_id)
    return jsonify({'success': True, 'status': upload.status, 'isVerified': upload.is_verified})


@uploads.route('/api/upload/download/<int:upload_id>', methods=['GET'])
def download_upload(upload_id):
    upload = db.session.get(Upload, upload_id)
    if upload is None:
        raise NotFound('File not found')
    return send_stored_file(upload.data, upload.content_type, upload.filename)


@uploads.route('/api/upload/<int:upload_id>', methods=['PATCH'])
@admin_required
def decide_upload(upload_id):
    data = request.get_json(silent=True) or {}
    user_id = data.get('userId')
    if user_id is not None:
        try:
            user_id = int(user_id)
        except (TypeError, ValueError):
            raise BadRequest('Invalid userId')

    status = data.get('status')
    upload = set_upload_status(upload_id, status, user_id)
    return jsonify({'success': True, 'message': f'Upload {status} successfully', 'upload': upload.to_dict()})
