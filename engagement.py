# Write side: posts, comments, likes and follows
#
# Each operation finishes with a single commit, so its writes land together.
import logging

from sqlalchemy.exc import IntegrityError

from errors import Forbidden, InvalidRequest, NotFound, Unauthorized, ValidationError
from forms import clean_text
from models import db, User, Post, Comment, Like, Follower

logger = logging.getLogger(__name__)


def _get_post(post_id):
    post = db.session.get(Post, post_id)
    if not post:
        raise NotFound('post not found')
    return post


def _get_target(username):
    target = User.query.filter_by(username=username).first()
    if not target:
        raise NotFound('user not found')
    return target


def toggle_like(post_id, actor):
    """Like the post if ``actor`` has not yet, otherwise unlike it. Returns True when liked."""
    post = _get_post(post_id)
    existing_like = db.session.get(Like, (post.id, actor.id))

    if existing_like:
        db.session.delete(existing_like)
        db.session.commit()
        return False

    try:
        db.session.add(Like(post_id=post.id, user_id=actor.id))
        db.session.commit()
    except IntegrityError:
        # A concurrent request liked it first
        db.session.rollback()
    return True


def like_count(post_id):
    return Like.query.filter_by(post_id=post_id).count()


def create_comment(post_id, actor, text):
    text = clean_text(text)
    if not text:
        raise ValidationError('comment is required')

    post = _get_post(post_id)
    comment = Comment(post=post, author=actor, content=text)
    db.session.add(comment)
    db.session.commit()
    return comment


def delete_comment(post_id, comment_id, actor):
    post = _get_post(post_id)
    comment = db.session.get(Comment, comment_id)
    if not comment or comment.post_id != post.id:
        raise NotFound('comment not found')

    if actor.id not in (post.user_id, comment.user_id):
        raise Forbidden('Not allowed')

    db.session.delete(comment)
    db.session.commit()


def follow(actor, username):
    target = _get_target(username)
    if target.id == actor.id:
        raise InvalidRequest('You cannot follow yourself')

    if db.session.get(Follower, (actor.id, target.id)) is None:
        try:
            db.session.add(Follower(follower_user_id=actor.id, followed_user_id=target.id))
            db.session.commit()
        except IntegrityError:
            # Edge written by a concurrent request
            db.session.rollback()
    return target


def unfollow(actor, username):
    target = _get_target(username)
    if target.id == actor.id:
        raise InvalidRequest('You cannot unfollow yourself')

    Follower.query.filter_by(follower_user_id=actor.id, followed_user_id=target.id)\
        .delete(synchronize_session='fetch')
    db.session.commit()
    return target


def post_content(content):
    """Return the cleaned post text, or raise when nothing is left of it."""
    content = clean_text(content)
    if not content:
        raise ValidationError('Post content is required')
    return content


def create_post(actor, content, image_url=None):
    content = post_content(content)

    post = Post(user_id=actor.id, content=content, image=image_url)
    db.session.add(post)
    db.session.commit()
    return post


def update_post(post_id, actor, content):
    post = _get_post(post_id)
    if post.user_id != actor.id:
        raise Unauthorized('You are not allowed to update this post')

    content = post_content(content)

    post.content = content
    db.session.commit()
    return post


def delete_post(post_id, actor):
    """Delete an owned post with its comments and likes. Returns the image URL it carried."""
    post = _get_post(post_id)
    if post.user_id != actor.id:
        raise Unauthorized('You are not allowed to delete this post')

    image = post.image
    Comment.query.filter_by(post_id=post.id).delete(synchronize_session='fetch')
    Like.query.filter_by(post_id=post.id).delete(synchronize_session='fetch')
    db.session.delete(post)
    db.session.commit()
    logger.info("User %s deleted post %s", actor.id, post_id)
    return image
