import io

import pytest

from app import create_app
from config import Config
from models import db, User, AdminRegister, Upload, PENDING, APPROVED

PDF_BYTES = b'%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF\n'
PNG_BYTES = b'\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x02\x00\x00\x00\x90wS\xde'


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    BCRYPT_LOG_ROUNDS = 4
    JWT_SECRET_KEY = 'jwt-secret-used-only-by-the-test-suite-0123456789'
    LOG_LEVEL = 'WARNING'


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def credential_file():
    def _file(name='id-card.pdf', data=PDF_BYTES, content_type='application/pdf'):
        return (io.BytesIO(data), name, content_type)
    return _file


@pytest.fixture
def make_user(app):
    def _make(name='Ana Cruz', email='ana@example.com', password='s3cret', is_admin=False,
              status=PENDING, is_verified=False, with_file=False):
        with app.app_context():
            user = User(name=name, email=email, is_admin=is_admin, status=status, is_verified=is_verified)
            user.set_password(password)
            if with_file:
                user.file_name = 'id-card.pdf'
                user.file_content_type = 'application/pdf'
                user.file_data = PDF_BYTES
            db.session.add(user)
            db.session.commit()
            return user.id
    return _make


@pytest.fixture
def make_registration(app):
    def _make(name='Ben Admin', email='ben@example.com', password='adminpass', status=PENDING):
        with app.app_context():
            registration = AdminRegister(name=name, email=email, status=status)
            registration.set_password(password)
            registration.file_name = 'badge.png'
            registration.file_content_type = 'image/png'
            registration.file_data = PNG_BYTES
            db.session.add(registration)
            db.session.commit()
            return registration.id
    return _make


@pytest.fixture
def make_upload(app):
    def _make(user_id=None, data=PDF_BYTES, filename='doc.pdf', content_type='application/pdf'):
        with app.app_context():
            upload = Upload(filename=filename, content_type=content_type, data=data, user_id=user_id, status=PENDING)
            db.session.add(upload)
            db.session.commit()
            return upload.id
    return _make


@pytest.fixture
def admin_headers(client, make_user):
    make_user(name='Root', email='root@example.com', password='rootpass',
              is_admin=True, status=APPROVED, is_verified=True)
    resp = client.post('/api/admin/login', json={'email': 'root@example.com', 'password': 'rootpass'})
    assert resp.status_code == 200
    return {'Authorization': f"Bearer {resp.get_json()['token']}"}
