# Read models: feeds, timelines, profile summaries and engagement views
from sqlalchemy import distinct, func

from errors import NotFound
from models import db, isoformat, User, Post, Comment, Like, Follower


def _summary(user):
    return user.summary() if user else None


def _posts_with_counts():
    """Posts joined to their owner with like/comment counts, newest first."""
    return db.session.query(
        Post,
        User,
        func.count(distinct(Like.user_id)).label('like_count'),
        func.count(distinct(Comment.id)).label('comment_count')
    ).outerjoin(User, User.id == Post.user_id)\
     .outerjoin(Like, Like.post_id == Post.id)\
     .outerjoin(Comment, Comment.post_id == Post.id)\
     .group_by(Post.id, User.id)\
     .order_by(Post.created_at.desc(), Post.id.desc())


def _comments_by_post(post_ids):
    """Comments of the given posts with their authors, oldest first per post."""
    grouped = {post_id: [] for post_id in post_ids}
    if not post_ids:
        return grouped

    rows = db.session.query(Comment, User)\
        .outerjoin(User, User.id == Comment.user_id)\
        .filter(Comment.post_id.in_(post_ids))\
        .order_by(Comment.created_at.asc(), Comment.id.asc())\
        .all()

    for comment, author in rows:
        grouped[comment.post_id].append({
            "id": comment.id,
            "content": comment.content,
            "createdAt": isoformat(comment.created_at),
            "author": _summary(author)
        })
    return grouped


def _likers_by_post(post_ids):
    grouped = {post_id: [] for post_id in post_ids}
    if not post_ids:
        return grouped
    for post_id, user_id in db.session.query(Like.post_id, Like.user_id)\
            .filter(Like.post_id.in_(post_ids))\
            .order_by(Like.created_at.asc()):
        grouped[post_id].append(user_id)
    return grouped


def _post_entry(post, owner, comments):
    return {
        "id": post.id,
        "content": post.content,
        "image": post.image,
        "createdAt": isoformat(post.created_at),
        "updatedAt": isoformat(post.updated_at),
        "owner": _summary(owner),
        "comments": comments
    }


def home_feed():
    """
    Every post with its owner, its comments (each with author) and
    like/comment counts. Posts whose owner row is gone keep a null owner.
    """
    results = _posts_with_counts().all()
    comments = _comments_by_post([post.id for post, _, _, _ in results])

    feed = []
    for post, owner, like_count, comment_count in results:
        entry = _post_entry(post, owner, comments[post.id])
        entry["commentsCount"] = int(comment_count)
        entry["likeCount"] = int(like_count)
        feed.append(entry)
    return feed


def user_timeline(username):
    """Posts owned by ``username``, same shape as the home feed plus liker ids."""
    user = User.query.filter_by(username=username).first()
    if not user:
        raise NotFound('user not found')

    results = _posts_with_counts().filter(Post.user_id == user.id).all()
    post_ids = [post.id for post, _, _, _ in results]
    comments = _comments_by_post(post_ids)
    likers = _likers_by_post(post_ids)

    timeline = []
    for post, owner, like_count, comment_count in results:
        entry = _post_entry(post, owner, comments[post.id])
        entry["likes"] = likers[post.id]
        entry["commentCount"] = int(comment_count)
        entry["likeCount"] = int(like_count)
        timeline.append(entry)
    return timeline


def post_likers(post_id):
    post = db.session.get(Post, post_id)
    if not post:
        raise NotFound('post not found')

    liked_users = db.session.query(User)\
        .join(Like, Like.user_id == User.id)\
        .filter(Like.post_id == post_id)\
        .order_by(Like.created_at.asc())\
        .all()

    return {
        "postId": post.id,
        "likedUsers": [user.summary() for user in liked_users]
    }


def post_comments(post_id):
    """Comments of one post, newest first."""
    post = db.session.get(Post, post_id)
    if not post:
        raise NotFound('post not found')

    rows = db.session.query(Comment, User)\
        .outerjoin(User, User.id == Comment.user_id)\
        .filter(Comment.post_id == post_id)\
        .order_by(Comment.created_at.desc(), Comment.id.desc())\
        .all()
    return [comment.to_dict(author) for comment, author in rows]


def profile_summary(username, viewer=None):
    user = User.query.filter_by(username=username).first()
    if not user:
        raise NotFound('user not found')

    posts_count = Post.query.filter_by(user_id=user.id).count()
    followers_count = Follower.query.filter_by(followed_user_id=user.id).count()
    following_count = Follower.query.filter_by(follower_user_id=user.id).count()

    is_following = False
    if viewer is not None:
        is_following = db.session.get(Follower, (viewer.id, user.id)) is not None

    return {
        "id": user.id,
        "username": user.username,
        "bio": user.bio,
        "profileImage": user.profile_image,
        "createdAt": isoformat(user.created_at),
        "postsCount": posts_count,
        "followersCount": followers_count,
        "followingCount": following_count,
        "isFollowing": is_following
    }
