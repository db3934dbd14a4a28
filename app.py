import logging

from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from werkzeug.exceptions import HTTPException

from models import db, bcrypt

jwt = JWTManager()
migrate = Migrate()


def register_error_handlers(app):
    @app.errorhandler(HTTPException)
    def http_error(error):
        return jsonify({'success': False, 'message': error.description}), error.code

    @app.errorhandler(Exception)
    def server_error(error):
        db.session.rollback()
        app.logger.exception('Unhandled error on %s %s', request.method, request.path)
        return jsonify({'success': False, 'message': 'Server error'}), 500


def create_app(config_object='config.Config'):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(level=app.config['LOG_LEVEL'])
    app.logger.setLevel(app.config['LOG_LEVEL'])

    db.init_app(app)
    bcrypt.init_app(app)
    jwt.init_app(app)
    migrate.init_app(app, db)
    CORS(app, resources={r'/api/*': {'origins': app.config['CORS_ORIGINS']}})

    from portal.auth import register_jwt_handlers
    from portal.commands import register_commands
    from portal.admin_ops import admin_ops
    from portal.user_client import user_client
    from portal.uploads import uploads
    from portal.jobs import jobs
    from portal.profiles import profiles
    from portal.messaging import messaging

    register_jwt_handlers(jwt)
    register_error_handlers(app)
    register_commands(app)

    app.register_blueprint(admin_ops)
    app.register_blueprint(user_client)
    app.register_blueprint(uploads)
    app.register_blueprint(jobs)
    app.register_blueprint(profiles)
    app.register_blueprint(messaging)

    @app.route('/api/test')
    def api_test():
        return jsonify({'success': True, 'message': 'API is working'})

    return app


if (__name__ == "__main__"):
    app = create_app()
    with app.app_context():
        db.create_all()

    app.run(port=app.config['PORT'], debug=app.config['DEBUG'])
