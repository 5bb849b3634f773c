# Configuration settings
import os
import tempfile
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()


def _int_env(name, default):
    return int(os.environ.get(name, default))


class Config:
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///social_media.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=_int_env('ACCESS_TOKEN_EXPIRY_MINUTES', 15))
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=_int_env('REFRESH_TOKEN_EXPIRY_DAYS', 10))
    # Tokens travel in the accessToken/refreshToken cookies or a Bearer header
    JWT_TOKEN_LOCATION = ['cookies', 'headers']
    JWT_ACCESS_COOKIE_NAME = 'accessToken'
    JWT_REFRESH_COOKIE_NAME = 'refreshToken'
    JWT_COOKIE_SECURE = True
    JWT_COOKIE_CSRF_PROTECT = False

    BCRYPT_LOG_ROUNDS = _int_env('BCRYPT_LOG_ROUNDS', 10)

    CLOUDINARY_CLOUD_NAME = os.environ.get('CLOUDINARY_CLOUD_NAME')
    CLOUDINARY_API_KEY = os.environ.get('CLOUDINARY_API_KEY')
    CLOUDINARY_API_SECRET = os.environ.get('CLOUDINARY_API_SECRET')
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER', os.path.join(tempfile.gettempdir(), 'social-media-uploads'))
    MAX_CONTENT_LENGTH = _int_env('MAX_CONTENT_LENGTH', 10 * 1024 * 1024)

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    DEBUG = True

    @classmethod
    def init_app(cls, app):
        pass


class DevelopmentConfig(Config):
    DEBUG = True
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY', 'dev-secret-key-not-for-deployment')


class ProductionConfig(Config):
    DEBUG = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'WARNING')

    @classmethod
    def init_app(cls, app):
        if not app.config.get('JWT_SECRET_KEY'):
            raise RuntimeError('JWT_SECRET_KEY must be set in production')


class TestingConfig(Config):
    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    BCRYPT_LOG_ROUNDS = 4
    JWT_SECRET_KEY = 'testing-secret-key-with-enough-length-for-hs256'
    CLOUDINARY_CLOUD_NAME = None
    CLOUDINARY_API_KEY = None
    CLOUDINARY_API_SECRET = None
    LOG_LEVEL = 'DEBUG'


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
