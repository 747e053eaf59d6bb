"""Blog router for managing blog posts in the back-office."""

import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from dealership.database import get_db
from dealership.models import BlogPost, BlogStatus, User
from dealership.schemas import BlogPostCreate, BlogPostList, BlogPostOut, BlogPostUpdate
from dealership.auth import get_current_user
from dealership.utils import commit_or_raise, get_or_404, paginate, slugify

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/blog", tags=["Blog"])


def unique_slug(db: Session, title: str, exclude_id: Optional[int] = None) -> str:
    """
    Slug from a title, suffixed with -1, -2, ... until no other post uses it.
    """
    base = slugify(title)
    slug = base
    counter = 0

    while True:
        query = db.query(BlogPost).filter(BlogPost.slug == slug)
        if exclude_id is not None:
            query = query.filter(BlogPost.id != exclude_id)
        if query.first() is None:
            return slug
        counter += 1
        slug = f"{base}-{counter}"


@router.get("", response_model=BlogPostList)
def list_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    status_filter: Optional[BlogStatus] = Query(None, alias="status"),
    search: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    List all blog posts, drafts included, newest first.

    Args:
        page: Page number
        limit: Page size, at most 50
        status_filter: Only posts with this status
        search: Matched against title and content
        current_user: Authenticated user
        db: Database session

    Returns:
        BlogPostList: One page of posts
    """
    logger.info("Fetching all blog posts")

    query = db.query(BlogPost)
    if status_filter:
        query = query.filter(BlogPost.status == status_filter.value)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(BlogPost.title.ilike(pattern), BlogPost.content.ilike(pattern)))

    posts, pagination = paginate(
        query.order_by(BlogPost.created_at.desc(), BlogPost.id.desc()), page, limit
    )
    logger.info(f"Found {pagination.total} blog posts")
    return {"posts": posts, "pagination": pagination}


@router.get("/stats")
def blog_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Post counts by status."""
    return compute_blog_stats(db)


def compute_blog_stats(db: Session) -> dict:
    counts = dict(db.query(BlogPost.status, func.count(BlogPost.id)).group_by(BlogPost.status).all())
    return {
        "total": sum(counts.values()),
        "published": counts.get(BlogStatus.PUBLISHED.value, 0),
        "draft": counts.get(BlogStatus.DRAFT.value, 0),
    }


@router.get("/{post_id}", response_model=BlogPostOut)
def get_post(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return get_or_404(db, BlogPost, post_id, "Blog post not found")


@router.post("", status_code=status.HTTP_201_CREATED, response_model=BlogPostOut)
def create_post(
    post_data: BlogPostCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Create a new blog post.

    The slug is derived from the title. Published posts get the given
    publish date, or now.

    Args:
        post_data: Validated post fields
        current_user: Authenticated user
        db: Database session

    Returns:
        BlogPostOut: Created blog post
    """
    logger.info(f"Creating new blog post: {post_data.title}")

    fields = post_data.model_dump()
    if post_data.status == BlogStatus.PUBLISHED.value:
        fields["published_at"] = post_data.published_at or datetime.utcnow()
    else:
        fields["published_at"] = None

    post = BlogPost(**fields, slug=unique_slug(db, post_data.title))
    db.add(post)
    commit_or_raise(db, "Blog post creation")
    db.refresh(post)

    logger.info(f"Blog post created successfully: {post.id}, slug: {post.slug}")
    return post


@router.patch("/{post_id}", response_model=BlogPostOut)
def update_post(
    post_id: int,
    update_data: BlogPostUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Update blog post fields.

    The slug only changes with the title. The publish date is set when a
    post is published for the first time.

    Raises:
        HTTPException: If post not found
    """
    logger.info(f"Updating blog post {post_id}")

    post = get_or_404(db, BlogPost, post_id, "Blog post not found")
    changes = update_data.model_dump(exclude_unset=True)
    published_at = changes.pop("published_at", None)

    if changes.get("title") and changes["title"] != post.title:
        post.slug = unique_slug(db, changes["title"], exclude_id=post.id)
        logger.debug(f"New slug for post {post_id}: {post.slug}")

    if changes.get("status") == BlogStatus.PUBLISHED.value and post.status != BlogStatus.PUBLISHED.value:
        post.published_at = published_at or datetime.utcnow()
        logger.debug(f"Post {post_id} published at {post.published_at}")

    for field, value in changes.items():
        setattr(post, field, value)

    commit_or_raise(db, "Blog post update")
    db.refresh(post)

    logger.info(f"Blog post {post_id} updated successfully")
    return post


@router.delete("/{post_id}")
def delete_post(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    post = get_or_404(db, BlogPost, post_id, "Blog post not found")
    db.delete(post)
    commit_or_raise(db, "Blog post deletion")

    logger.info(f"Blog post {post_id} deleted by {current_user.email}")
    return {"success": True}
