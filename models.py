# Database models
from datetime import datetime, timezone

from flask_bcrypt import Bcrypt
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
bcrypt = Bcrypt()


def utcnow():
    # Naive UTC, stored as-is by every backend
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat(value):
    return value.isoformat() if value else None


class User(db.Model):
    __tablename__ = 'users'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), unique=True, index=True, nullable=False)
    email = db.Column(db.String(120), unique=True, index=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    bio = db.Column(db.Text)
    profile_image = db.Column(db.String(500))
    refresh_token = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    posts = db.relationship('Post', backref='owner', lazy='dynamic')
    comments = db.relationship('Comment', backref='author', lazy='dynamic')

    @property
    def password(self):
        raise AttributeError('password is write-only')

    @password.setter
    def password(self, raw_password):
        # Hashing happens only when the password itself is assigned
        self.password_hash = bcrypt.generate_password_hash(raw_password).decode('utf-8')

    def is_password_correct(self, raw_password):
        return bcrypt.check_password_hash(self.password_hash, raw_password)

    def summary(self):
        return {
            "id": self.id,
            "username": self.username,
            "profileImage": self.profile_image
        }

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "bio": self.bio,
            "profileImage": self.profile_image,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at)
        }


class Post(db.Model):
    __tablename__ = 'posts'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    content = db.Column(db.Text, nullable=False)
    image = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    comments = db.relationship('Comment', backref='post', lazy='dynamic',
                               passive_deletes=True)
    likes = db.relationship('Like', backref='post', lazy='dynamic',
                            passive_deletes=True)

    def to_dict(self):
        return {
            "id": self.id,
            "owner": self.user_id,
            "content": self.content,
            "image": self.image,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at)
        }


class Comment(db.Model):
    __tablename__ = 'comments'
    id = db.Column(db.Integer, primary_key=True)
    post_id = db.Column(db.Integer, db.ForeignKey('posts.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    def to_dict(self, author=None):
        return {
            "id": self.id,
            "post": self.post_id,
            "content": self.content,
            "createdAt": isoformat(self.created_at),
            "author": author.summary() if author else None
        }


class Like(db.Model):
    __tablename__ = 'likes'
    post_id = db.Column(db.Integer, db.ForeignKey('posts.id'), primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), primary_key=True)
    created_at = db.Column(db.DateTime, default=utcnow)


class Follower(db.Model):
    __tablename__ = 'followers'
    follower_user_id = db.Column(db.Integer, db.ForeignKey('users.id'), primary_key=True)
    followed_user_id = db.Column(db.Integer, db.ForeignKey('users.id'), primary_key=True)
    created_at = db.Column(db.DateTime, default=utcnow)
