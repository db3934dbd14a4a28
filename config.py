import os
import datetime
import json

try:
    config = json.loads(open("config.json").read())
except FileNotFoundError:
    config = json.loads(open(os.path.join(os.path.dirname(os.path.abspath(__file__)), "democonfig.json")).read())


def _env_list(name, default):
    value = os.getenv(name)
    if value is None:
        return list(default)
    return [item.strip() for item in value.split(',') if item.strip()]


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', config['SECRET_KEY'])  # Secret key for session management
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', config['JWT_SECRET_KEY'])  # Secret key for JWT
    JWT_ACCESS_TOKEN_EXPIRES = datetime.timedelta(hours=int(os.getenv('JWT_ACCESS_TOKEN_EXPIRES', config['JWT_ACCESS_TOKEN_EXPIRES'])))

    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', config['SQLALCHEMY_DATABASE_URI'])
    SQLALCHEMY_TRACK_MODIFICATIONS = config['SQLALCHEMY_TRACK_MODIFICATIONS']

    MAX_FILE_SIZE = int(os.getenv('MAX_FILE_SIZE', config['MAX_FILE_SIZE']))  # 5 MiB
    ALLOWED_CONTENT_TYPES = _env_list('ALLOWED_CONTENT_TYPES', config['ALLOWED_CONTENT_TYPES'])
    CORS_ORIGINS = _env_list('CORS_ORIGINS', config['CORS_ORIGINS'])

    BCRYPT_LOG_ROUNDS = int(os.getenv('BCRYPT_LOG_ROUNDS', config['BCRYPT_LOG_ROUNDS']))
    LOG_LEVEL = os.getenv('LOG_LEVEL', config['LOG_LEVEL'])

    DEBUG = config['DEBUG']
    PORT = int(os.getenv('PORT', config['PORT']))
