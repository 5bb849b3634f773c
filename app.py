# Main Flask app
import logging

from flask import Flask

from config import config
from credentials import jwt
from errors import register_error_handlers
from media import media
from models import db, bcrypt
from routes import auth_bp, posts_bp, comments_bp, likes_bp


def create_app(config_name='default'):
    app = Flask(__name__)
    app.config.from_object(config[config_name])
    config[config_name].init_app(app)

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    # Initialize extensions
    db.init_app(app)
    bcrypt.init_app(app)
    jwt.init_app(app)
    media.init_app(app)

    register_error_handlers(app)

    # Register blueprints
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(posts_bp, url_prefix='/api/post')
    app.register_blueprint(comments_bp, url_prefix='/api/comment')
    app.register_blueprint(likes_bp, url_prefix='/api/likes')

    with app.app_context():
        db.create_all()

    return app


if __name__ == '__main__':
    create_app().run()
