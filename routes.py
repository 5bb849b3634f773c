# Routes for handling requests
from contextlib import contextmanager

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import (
    get_current_user, jwt_required, set_access_cookies, set_refresh_cookies, unset_jwt_cookies
)

import accounts
import engagement
import feed
from credentials import rotate_session
from errors import ValidationError
from media import media, save_upload

# Create blueprints for different route categories
auth_bp = Blueprint('auth', __name__)
posts_bp = Blueprint('posts', __name__)
comments_bp = Blueprint('comments', __name__)
likes_bp = Blueprint('likes', __name__)


def api_response(data=None, message='', status=200):
    return jsonify({"success": True, "message": message, "data": data}), status


def session_response(data, message, status, access_token, refresh_token):
    response, status = api_response(data, message, status)
    set_access_cookies(response, access_token)
    set_refresh_cookies(response, refresh_token)
    return response, status


def request_data():
    """JSON body if there is one, otherwise the submitted form fields."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def upload_file(field):
    """Push an uploaded file to the media host; returns its URL or None."""
    path = save_upload(request.files.get(field), current_app.config['UPLOAD_FOLDER'])
    if not path:
        return None
    result = media.upload(path)
    return result["url"] if result else None


@contextmanager
def removed_on_error(media_url):
    """Take a freshly uploaded asset back off the media host if the block raises."""
    try:
        yield
    except Exception:
        media.remove(media_url)
        raise


# Authentication Endpoints
@auth_bp.route('/signup', methods=['POST'])
def signup():
    """User Registration Endpoint"""
    data = request_data()
    accounts.check_signup(data)
    profile_image_url = upload_file('profileImage')
    with removed_on_error(profile_image_url):
        user, access_token, refresh_token = accounts.register_user(data, profile_image_url)

    return session_response({
        "user": user.to_dict(),
        "accessToken": access_token,
        "refreshToken": refresh_token
    }, "user Register Successfully", 201, access_token, refresh_token)


@auth_bp.route('/login', methods=['POST'])
def login():
    """User Login Endpoint"""
    user, access_token, refresh_token = accounts.authenticate(request_data())

    return session_response({
        "user": user.to_dict(),
        "accessToken": access_token,
        "refreshToken": refresh_token
    }, "user logged in successfully", 200, access_token, refresh_token)


@auth_bp.route('/logout', methods=['POST'])
@jwt_required()
def logout():
    accounts.logout(get_current_user())
    response, status = api_response(None, "user logged out successfully")
    unset_jwt_cookies(response)
    return response, status


@auth_bp.route('/refreshToken', methods=['POST'])
def refresh_token():
    incoming = request.cookies.get(current_app.config['JWT_REFRESH_COOKIE_NAME']) \
        or request_data().get('refreshToken')
    access_token, new_refresh_token = rotate_session(incoming)

    return session_response({
        "accessToken": access_token,
        "refreshToken": new_refresh_token
    }, "access token refreshed", 200, access_token, new_refresh_token)


@auth_bp.route('/getCurrentUser', methods=['GET'])
@jwt_required()
def get_current_user_data():
    return api_response(get_current_user().to_dict(), "current user fetched successfully")


@auth_bp.route('/changePassword', methods=['POST'])
@jwt_required()
def change_password():
    data = request_data()
    accounts.change_password(get_current_user(), data.get('oldPassword'), data.get('newPassword'))
    return api_response(None, "password changed successfully")


@auth_bp.route('/addBio', methods=['POST'])
@jwt_required()
def add_bio():
    user = accounts.set_bio(get_current_user(), request_data().get('bio'))
    return api_response(user.to_dict(), "bio added successfully", 201)


@auth_bp.route('/updateBio', methods=['PATCH'])
@jwt_required()
def update_bio():
    user = accounts.set_bio(get_current_user(), request_data().get('bio'))
    return api_response(user.to_dict(), "bio updated successfully")


@auth_bp.route('/update-profile-image', methods=['PATCH'])
@jwt_required()
def update_profile_image():
    if 'profileImage' not in request.files:
        raise ValidationError('profile image is required')

    image_url = upload_file('profileImage')
    if not image_url:
        raise ValidationError('error while uploading profile image')

    user = get_current_user()
    previous = accounts.set_profile_image(user, image_url)
    media.remove(previous)
    return api_response(user.to_dict(), "profile image updated successfully")


@auth_bp.route('/get-user-profile-data/<username>', methods=['GET'])
@jwt_required(optional=True)
def get_user_profile_data(username):
    profile = feed.profile_summary(username, viewer=get_current_user())
    return api_response(profile, "user profile fetched successfully")


@auth_bp.route('/follow/<username>', methods=['POST'])
@jwt_required()
def follow_user(username):
    target = engagement.follow(get_current_user(), username)
    return api_response(target.summary(), f"you are now following {target.username}")


@auth_bp.route('/unfollow/<username>', methods=['POST'])
@jwt_required()
def unfollow_user(username):
    target = engagement.unfollow(get_current_user(), username)
    return api_response(target.summary(), f"you unfollowed {target.username}")


# Post Endpoints
@posts_bp.route('/create-post', methods=['POST'])
@jwt_required()
def create_post():
    content = engagement.post_content(request_data().get('content'))
    image_url = upload_file('image')
    with removed_on_error(image_url):
        post = engagement.create_post(get_current_user(), content, image_url)
    return api_response(post.to_dict(), "post created successfully", 201)


@posts_bp.route('/get-all-post', methods=['GET'])
@jwt_required()
def get_all_posts():
    return api_response(feed.home_feed(), "posts fetched successfully")


@posts_bp.route('/get-post/<username>', methods=['GET'])
@jwt_required()
def get_user_posts(username):
    return api_response(feed.user_timeline(username), "user posts fetched successfully")


@posts_bp.route('/update-post/<int:post_id>', methods=['PATCH'])
@jwt_required()
def update_post(post_id):
    post = engagement.update_post(post_id, get_current_user(), request_data().get('content'))
    return api_response(post.to_dict(), "post updated successfully")


@posts_bp.route('/delete-post/<int:post_id>', methods=['DELETE'])
@jwt_required()
def delete_post(post_id):
    image = engagement.delete_post(post_id, get_current_user())
    media.remove(image)
    return api_response(None, "post deleted successfully")


# Comment Endpoints
@comments_bp.route('/create-comment/<int:post_id>', methods=['POST'])
@jwt_required()
def create_comment(post_id):
    user = get_current_user()
    comment = engagement.create_comment(post_id, user, request_data().get('comment'))
    return api_response(comment.to_dict(user), "Comment created Successfully", 201)


@comments_bp.route('/get-comment-post/<int:post_id>', methods=['GET'])
@jwt_required()
def get_post_comments(post_id):
    return api_response(feed.post_comments(post_id), "Comment fetched Successfully")


@comments_bp.route('/delete-comment/post/<int:post_id>/comment/<int:comment_id>', methods=['DELETE'])
@jwt_required()
def delete_comment(post_id, comment_id):
    engagement.delete_comment(post_id, comment_id, get_current_user())
    return api_response(None, "comment deleted successfully")


# Like Endpoints
@likes_bp.route('/post/<int:post_id>/toggle-like', methods=['POST'])
@jwt_required()
def toggle_like(post_id):
    liked = engagement.toggle_like(post_id, get_current_user())
    message = "you liked the post" if liked else "you unliked the post"
    return api_response({"liked": liked, "likeCount": engagement.like_count(post_id)}, message)


@likes_bp.route('/post/<int:post_id>', methods=['GET'])
@jwt_required()
def get_post_likes(post_id):
    return api_response(feed.post_likers(post_id), "liked users fetched successfully")
