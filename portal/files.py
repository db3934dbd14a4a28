import io
from collections import namedtuple

from flask import current_app, send_file
from werkzeug.exceptions import BadRequest, NotFound
from werkzeug.utils import secure_filename

StoredFile = namedtuple('StoredFile', 'filename content_type data')


def allowed_file(file, allowed_types=None):
    allowed = allowed_types or current_app.config['ALLOWED_CONTENT_TYPES']
    return file.mimetype in allowed


def read_file(file, missing_message='No file uploaded', allowed_types=None,
              type_message='Invalid file type. Only JPG, PNG and PDF files are allowed.'):
    """Validate an uploaded ``FileStorage`` and pull its bytes into memory.

    Raises ``BadRequest`` before anything is written when the file is absent,
    of a disallowed content type, empty or larger than ``MAX_FILE_SIZE``.
    """
    if file is None or file.filename == '':
        raise BadRequest(missing_message)

    if not allowed_file(file, allowed_types):
        raise BadRequest(type_message)

    limit = current_app.config['MAX_FILE_SIZE']
    data = file.read(limit + 1)
    if len(data) > limit:
        raise BadRequest(f'File exceeds the {limit // (1024 * 1024)} MB limit')
    if not data:
        raise BadRequest('Uploaded file is empty')

    filename = secure_filename(file.filename) or 'upload'
    return StoredFile(filename, file.mimetype, data)


def send_stored_file(data, content_type, filename, missing_message='File not found', **kwargs):
    if not data:
        raise NotFound(missing_message)
    kwargs.setdefault('as_attachment', True)
    return send_file(io.BytesIO(data), mimetype=content_type, download_name=filename, **kwargs)
