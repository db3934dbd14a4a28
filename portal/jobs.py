from models import db, Job, JobApplication, User, JOB_CATEGORIES, APPLICATION_STATUSES
from flask import Blueprint, jsonify, request, current_app
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import BadRequest, NotFound

from portal.auth import admin_required
from portal.files import read_file, send_stored_file


jobs = Blueprint('jobs', __name__)

JOB_FIELDS = ('title', 'company', 'location', 'description', 'category')
APPLICATION_FIELDS = ('fullName', 'email', 'phone', 'experience', 'education', 'coverLetter')


def category_counts():
    """Number of jobs per category, from one GROUP BY over the jobs table."""
    rows = db.session.query(Job.category, db.func.count(Job.id)).group_by(Job.category).all()
    return {category: count for category, count in rows if category}


def _get_job(job_id):
    job = db.session.get(Job, job_id)
    if job is None:
        raise NotFound('Job not found')
    return job


def _apply_job_fields(job, data):
    category = data.get('category')
    if 'category' in data and (not isinstance(category, str) or category not in JOB_CATEGORIES):
        raise BadRequest(f'Invalid category. Must be one of: {", ".join(JOB_CATEGORIES)}')
    for field in JOB_FIELDS:
        if field in data and not isinstance(data[field], str):
            raise BadRequest(f'{field} must be text')
    for field in JOB_FIELDS:
        if field in data:
            setattr(job, field, data[field])


@jobs.route('/api/jobs', methods=['GET'])
def list_jobs():
    return jsonify([job.to_dict() for job in Job.query.order_by(Job.posted_date.desc(), Job.id.desc()).all()])


@jobs.route('/api/jobs', methods=['POST'])
def create_job():
    data = request.get_json(silent=True) or {}
    if not data.get('title') or not data.get('category'):
        raise BadRequest('Title and category are required')

    job = Job()
    _apply_job_fields(job, data)
    db.session.add(job)
    db.session.commit()
    current_app.logger.info('Job %s created in %s', job.id, job.category)
    return jsonify({'success': True, 'job': job.to_dict()})


@jobs.route('/api/jobs/categories', methods=['GET'])
def job_categories():
    try:
        counts = category_counts()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception('Error fetching job categories')
        return jsonify({
            'success': False,
            'message': 'Error fetching job categories',
            'categories': [{'name': name, 'description': '', 'count': 0} for name in JOB_CATEGORIES],
        }), 500

    return jsonify({
        'success': True,
        'categories': [
            {'name': name, 'description': description, 'count': counts.get(name, 0)}
            for name, description in JOB_CATEGORIES.items()
        ],
    })


@jobs.route('/api/jobs/category-names', methods=['GET'])
def category_names():
    return jsonify({'success': True, 'categories': list(JOB_CATEGORIES)})


@jobs.route('/api/jobs/stats/categories', methods=['GET'])
def category_stats():
    counts = category_counts()
    stats = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return jsonify([{'category': category, 'count': count} for category, count in stats])


@jobs.route('/api/jobs/<int:job_id>', methods=['GET'])
def get_job(job_id):
    return jsonify({'success': True, 'job': _get_job(job_id).to_dict()})


@jobs.route('/api/jobs/<int:job_id>', methods=['PUT'])
def update_job(job_id):
    job = _get_job(job_id)
    _apply_job_fields(job, request.get_json(silent=True) or {})
    db.session.commit()
    current_app.logger.info('Job %s updated', job.id)
    return jsonify({'success': True, 'job': job.to_dict()})


@jobs.route('/api/jobs/<int:job_id>', methods=['DELETE'])
def delete_job(job_id):
    job = _get_job(job_id)
    JobApplication.query.filter_by(job_id=job.id).delete()
    db.session.delete(job)
    db.session.commit()
    current_app.logger.info('Job %s and its applications deleted', job_id)
    return jsonify({'success': True, 'message': 'Job and all related applications deleted successfully'})


@jobs.route('/api/jobs/<int:job_id>/apply', methods=['POST'])
def apply_to_job(job_id):
    form = request.form
    if any(not (form.get(field) or '').strip() for field in APPLICATION_FIELDS):
        raise BadRequest('All required fields must be filled')
    job = _get_job(job_id)

    email = form['email'].strip().lower()
    user = User.query.filter_by(email=email, is_admin=False).first()
    if user is None:
        raise NotFound('Please register before applying')

    if JobApplication.query.filter_by(job_id=job.id, user_id=user.id).first():
        raise BadRequest('You have already applied for this job')

    application = JobApplication(
        job_id=job.id,
        user_id=user.id,
        full_name=form['fullName'],
        email=email,
        phone=form['phone'],
        experience=form['experience'],
        education=form['education'],
        cover_letter=form['coverLetter'],
        status='submitted',
    )
    resume = request.files.get('resume')
    if resume is not None and resume.filename:
        stored = read_file(resume)
        application.resume_name = stored.filename
        application.resume_content_type = stored.content_type
        application.resume_data = stored.data

    db.session.add(application)
    db.session.commit()
    current_app.logger.info('User %s applied to job %s', user.id, job.id)
    return jsonify({'success': True, 'message': 'Application submitted successfully', 'applicationId': application.id})


@jobs.route('/api/jobs/<int:job_id>/applications', methods=['GET'])
@admin_required
def job_applications(job_id):
    job = _get_job(job_id)
    applications = JobApplication.query.filter_by(job_id=job.id).order_by(JobApplication.applied_date.desc()).all()
    return jsonify({'success': True, 'applications': [a.to_dict() for a in applications]})


@jobs.route('/api/user/applications', methods=['GET'])
def user_applications():
    email = (request.args.get('email') or '').strip().lower()
    if not email:
        raise BadRequest('Email is required')
    user = User.query.filter_by(email=email, is_admin=False).first()
    if user is None:
        raise NotFound('User not found')

    applications = JobApplication.query.filter_by(user_id=user.id).order_by(JobApplication.applied_date.desc()).all()
    return jsonify({'success': True, 'applications': [a.to_dict() for a in applications]})


@jobs.route('/api/applications/<int:application_id>/status', methods=['PUT'])
@admin_required
def update_application_status(application_id):
    data = request.get_json(silent=True) or {}
    status = data.get('status')
    if status not in APPLICATION_STATUSES:
        raise BadRequest('Invalid status')

    application = db.session.get(JobApplication, application_id)
    if application is None:
        raise NotFound('Application not found')
    application.status = status
    application.notes = data.get('notes') or ''
    db.session.commit()

    current_app.logger.info('Application %s moved to %s', application.id, status)
    return jsonify({'success': True, 'message': 'Application status updated successfully', 'application': application.to_dict()})


@jobs.route('/api/applications/<int:application_id>/resume', methods=['GET'])
@admin_required
def application_resume(application_id):
    application = db.session.get(JobApplication, application_id)
    if application is None:
        raise NotFound('Resume not found')
    return send_stored_file(application.resume_data, application.resume_content_type, application.resume_name, 'Resume not found')
