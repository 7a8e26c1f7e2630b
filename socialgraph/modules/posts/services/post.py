from typing import Collection, List, Optional
import uuid
import logging

from sqlalchemy.orm import Session

from socialgraph.modules.posts.models.post import Post
from socialgraph.modules.posts.schemas.post import PostCreate

logger = logging.getLogger(__name__)

def get_post(db: Session, post_id: str) -> Optional[Post]:
    """Get post by ID"""
    return db.query(Post).filter(Post.id == post_id).first()

def get_user_posts(db: Session, user_id: str, skip: int = 0, limit: int = 20) -> List[Post]:
    """Get posts by user ID"""
    return (
        db.query(Post)
        .filter(Post.author_id == user_id)
        .order_by(Post.created_at.desc(), Post.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )

def get_posts_by_authors(db: Session, author_ids: Collection[str], limit: int) -> List[Post]:
    """Newest posts written by any of the given authors"""
    if not author_ids:
        return []
    return (
        db.query(Post)
        .filter(Post.author_id.in_(list(author_ids)))
        .order_by(Post.created_at.desc(), Post.id.desc())
        .limit(limit)
        .all()
    )

def get_trending_posts(
    db: Session,
    min_engagement: int,
    limit: int,
    exclude_author_ids: Collection[str] = (),
) -> List[Post]:
    """Posts above the engagement floor ranked by likes, then comments"""
    query = db.query(Post).filter(Post.likes_count + Post.comments_count >= min_engagement)
    if exclude_author_ids:
        query = query.filter(Post.author_id.notin_(list(exclude_author_ids)))
    return (
        query.order_by(
            Post.likes_count.desc(),
            Post.comments_count.desc(),
            Post.created_at.desc(),
            Post.id.desc(),
        )
        .limit(limit)
        .all()
    )

def get_posts_in_city(
    db: Session,
    city: str,
    limit: int,
    exclude_author_ids: Collection[str] = (),
) -> List[Post]:
    """Newest posts tagged with the given city"""
    query = db.query(Post).filter(Post.location_city == city)
    if exclude_author_ids:
        query = query.filter(Post.author_id.notin_(list(exclude_author_ids)))
    return query.order_by(Post.created_at.desc(), Post.id.desc()).limit(limit).all()

def create_post(db: Session, post_in: PostCreate, author_id: str) -> Post:
    """Create new post"""
    post = Post(
        id=str(uuid.uuid4()),
        author_id=author_id,
        caption=post_in.caption,
        location_city=post_in.location_city,
        likes_count=0,
        comments_count=0,
    )
    db.add(post)
    db.commit()
    db.refresh(post)
    logger.info(f"Created post {post.id} for author {author_id}")
    return post

