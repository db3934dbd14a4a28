import datetime

from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from sqlalchemy.orm import validates

db = SQLAlchemy()
bcrypt = Bcrypt()

PENDING = 'pending'
APPROVED = 'approved'
REJECTED = 'rejected'
STATUSES = (PENDING, APPROVED, REJECTED)

APPLICATION_STATUSES = ('submitted', 'reviewing', 'interview', 'accepted', 'rejected')

# Category name -> description shown on the jobs dashboard, in display order.
JOB_CATEGORIES = {
    'Healthcare': 'Medical and health-related positions including nurses, caregivers, and medical assistants',
    'Education': 'Teaching, tutoring, and educational support roles in schools and community programs',
    'Administration': 'Office work, data entry, clerical, and administrative support positions',
    'Social Services': 'Community outreach, social work, and public service positions',
    'Security': 'Safety, security guard, and protection services within the barangay',
    'Maintenance': 'Facility maintenance, cleaning, repairs, and general upkeep jobs',
    'Technology': 'IT support, computer services, and technology-related positions',
    'Agriculture': 'Farming, gardening, livestock care, and agricultural support jobs',
    'Business': 'Sales, marketing, customer service, and small business opportunities',
    'Other': 'Miscellaneous job opportunities not covered in other categories',
}


def utcnow():
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() if value else None


class PasswordMixin:
    password_hash = db.Column(db.String(128), nullable=False)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        if not isinstance(password, str) or not password:
            return False
        return bcrypt.check_password_hash(self.password_hash, password)


class CredentialFileMixin:
    """Credential document stored inline with the record that submitted it."""

    file_name = db.Column(db.String(255))
    file_content_type = db.Column(db.String(100))
    file_data = db.Column(db.LargeBinary)
    file_uploaded_at = db.Column(db.DateTime)

    def attach_file(self, stored):
        self.file_name = stored.filename
        self.file_content_type = stored.content_type
        self.file_data = stored.data
        self.file_uploaded_at = utcnow()

    def file_info(self):
        if not self.file_data:
            return None
        return {
            'filename': self.file_name,
            'contentType': self.file_content_type,
            'uploadDate': _iso(self.file_uploaded_at),
        }


class StatusMixin:
    status = db.Column(db.String(10), nullable=False, default=PENDING, index=True)

    @validates('status')
    def _check_status(self, key, value):
        if value not in STATUSES:
            raise ValueError(f'status must be one of {", ".join(STATUSES)}')
        return value


class User(PasswordMixin, CredentialFileMixin, StatusMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), nullable=False, unique=True, index=True)
    is_admin = db.Column(db.Boolean, nullable=False, default=False)
    is_verified = db.Column(db.Boolean, nullable=False, default=False)
    # Advisory reference to the Upload submitted before registration.
    upload_id = db.Column(db.Integer, nullable=True)

    picture_name = db.Column(db.String(255))
    picture_content_type = db.Column(db.String(100))
    picture_data = db.Column(db.LargeBinary)
    picture_uploaded_at = db.Column(db.DateTime)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'status': self.status,
            'isVerified': self.is_verified,
            'isAdmin': self.is_admin,
            'file': self.file_info(),
            'hasProfilePicture': bool(self.picture_data),
        }


class Upload(StatusMixin, db.Model):
    __tablename__ = 'uploads'

    id = db.Column(db.Integer, primary_key=True)
    filename = db.Column(db.String(255), nullable=False)
    content_type = db.Column(db.String(100), nullable=False)
    data = db.Column(db.LargeBinary, nullable=False)
    upload_date = db.Column(db.DateTime, default=db.func.now())
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    is_verified = db.Column(db.Boolean, nullable=False, default=False)

    user = db.relationship('User', backref='uploads')

    def to_dict(self):
        return {
            'id': self.id,
            'filename': self.filename,
            'contentType': self.content_type,
            'uploadDate': _iso(self.upload_date),
            'status': self.status,
            'isVerified': self.is_verified,
            'user': {'id': self.user.id, 'name': self.user.name, 'email': self.user.email} if self.user else None,
        }


class AdminRegister(PasswordMixin, CredentialFileMixin, StatusMixin, db.Model):
    __tablename__ = 'admin_registers'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=db.func.now())

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'status': self.status,
            'file': self.file_info(),
            'createdAt': _iso(self.created_at),
        }


class Job(db.Model):
    __tablename__ = 'jobs'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    company = db.Column(db.String(200))
    location = db.Column(db.String(200))
    description = db.Column(db.Text)
    category = db.Column(db.String(40), nullable=False, index=True)
    posted_date = db.Column(db.DateTime, default=db.func.now())

    applications = db.relationship('JobApplication', backref='job', cascade='all, delete-orphan')

    @validates('category')
    def _check_category(self, key, value):
        if value not in JOB_CATEGORIES:
            raise ValueError(f'Unknown job category: {value}')
        return value

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'company': self.company,
            'location': self.location,
            'description': self.description,
            'category': self.category,
            'postedDate': _iso(self.posted_date),
        }


class JobApplication(db.Model):
    __tablename__ = 'job_applications'
    __table_args__ = (db.UniqueConstraint('job_id', 'user_id', name='uq_application_job_user'),)

    id = db.Column(db.Integer, primary_key=True)
    job_id = db.Column(db.Integer, db.ForeignKey('jobs.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    full_name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(40), nullable=False)
    experience = db.Column(db.Text, nullable=False)
    education = db.Column(db.Text, nullable=False)
    cover_letter = db.Column(db.Text, nullable=False)
    resume_name = db.Column(db.String(255))
    resume_content_type = db.Column(db.String(100))
    resume_data = db.Column(db.LargeBinary)
    status = db.Column(db.String(20), nullable=False, default='submitted')
    applied_date = db.Column(db.DateTime, default=db.func.now())
    notes = db.Column(db.Text, nullable=False, default='')

    user = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'fullName': self.full_name,
            'email': self.email,
            'phone': self.phone,
            'status': self.status,
            'notes': self.notes,
            'appliedDate': _iso(self.applied_date),
            'hasResume': bool(self.resume_data),
            'job': {
                'id': self.job.id,
                'title': self.job.title,
                'company': self.job.company,
                'location': self.job.location,
            },
            'user': {'id': self.user.id, 'name': self.user.name, 'email': self.user.email},
        }


class Conversation(db.Model):
    __tablename__ = 'conversations'

    id = db.Column(db.Integer, primary_key=True)
    members = db.Column(db.JSON, nullable=False)
    members_key = db.Column(db.String(512), nullable=False, unique=True)
    last_message = db.Column(db.String(60), nullable=False, default='')
    last_message_time = db.Column(db.DateTime, default=db.func.now())
    created_at = db.Column(db.DateTime, default=db.func.now())

    messages = db.relationship('Message', backref='conversation', cascade='all, delete-orphan')

    @staticmethod
    def key_for(members):
        return ','.join(sorted(members))

    def to_dict(self):
        return {
            'id': self.id,
            'members': self.members,
            'lastMessage': self.last_message,
            'lastMessageTime': _iso(self.last_message_time),
            'createdAt': _iso(self.created_at),
        }


class Message(db.Model):
    __tablename__ = 'messages'

    id = db.Column(db.Integer, primary_key=True)
    conversation_id = db.Column(db.Integer, db.ForeignKey('conversations.id'), nullable=False, index=True)
    sender = db.Column(db.String(120), nullable=False)
    text = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=db.func.now())

    def to_dict(self):
        return {
            'id': self.id,
            'conversationId': self.conversation_id,
            'sender': self.sender,
            'text': self.text,
            'createdAt': _iso(self.created_at),
        }
