"""Public router for the catalog, blog and inquiry forms."""

import os
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from dotenv import load_dotenv

from dealership.database import get_db
from dealership.models import BlogPost, BlogStatus, Lead, Vehicle, VehicleStatus
from dealership.schemas import (
    BlogPostDetail, BlogPostList, InquiryCreate, InquirySubmitted, Pagination, VehicleOut,
)
from dealership.utils import commit_or_raise, paginate

# Load environment variables
load_dotenv()

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(tags=["Public"])

NAME_APP = os.getenv("NAME_APP", "ST Motors")

VEHICLE_SORTS = {
    "newest": (Vehicle.created_at.desc(), Vehicle.id.desc()),
    "price-asc": (Vehicle.selling_price.asc(), Vehicle.id.asc()),
    "price-desc": (Vehicle.selling_price.desc(), Vehicle.id.desc()),
    "km-asc": (Vehicle.mileage.asc(), Vehicle.id.asc()),
}


def fetch_active_vehicles(
    db: Session,
    manufacturer: Optional[str] = None,
    vehicle_type: Optional[str] = None,
    fuel_type: Optional[str] = None,
    transmission: Optional[str] = None,
    price_min: Optional[float] = None,
    price_max: Optional[float] = None,
    mileage_max: Optional[int] = None,
    sort: str = "newest",
    limit: Optional[int] = None,
) -> List[Vehicle]:
    """
    Active vehicles for the public catalog.

    Returns an empty list when the store cannot be read so that public
    pages never fail.
    """
    try:
        query = db.query(Vehicle).options(selectinload(Vehicle.images)).filter(
            Vehicle.status == VehicleStatus.ACTIVE.value
        )

        if manufacturer:
            query = query.filter(Vehicle.manufacturer.ilike(f"%{manufacturer}%"))
        if vehicle_type:
            query = query.filter(Vehicle.vehicle_type == vehicle_type)
        if fuel_type:
            query = query.filter(Vehicle.fuel_type == fuel_type)
        if transmission:
            query = query.filter(Vehicle.transmission == transmission)
        if price_min is not None:
            query = query.filter(Vehicle.selling_price >= price_min)
        if price_max is not None:
            query = query.filter(Vehicle.selling_price <= price_max)
        if mileage_max is not None:
            query = query.filter(Vehicle.mileage <= mileage_max)

        query = query.order_by(*VEHICLE_SORTS.get(sort, VEHICLE_SORTS["newest"]))
        if limit:
            query = query.limit(limit)

        return query.all()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching public vehicles: {e}")
        db.rollback()
        return []


def count_vehicles(db: Session) -> dict:
    """Total and available vehicle counts, zero when the store cannot be read."""
    try:
        total = db.query(Vehicle).count()
        available = db.query(Vehicle).filter(Vehicle.status == VehicleStatus.ACTIVE.value).count()
        return {"total": total, "available": available}
    except SQLAlchemyError as e:
        logger.error(f"Error counting vehicles: {e}")
        db.rollback()
        return {"total": 0, "available": 0}


def fetch_published_posts(db: Session, page: int = 1, limit: Optional[int] = None):
    """
    Published blog posts, newest first.

    Returns no posts when the store cannot be read.
    """
    try:
        query = db.query(BlogPost).filter(
            BlogPost.status == BlogStatus.PUBLISHED.value
        ).order_by(BlogPost.published_at.desc(), BlogPost.id.desc())

        if limit:
            return paginate(query, page, limit)

        posts = query.all()
        return posts, Pagination(page=1, limit=len(posts), total=len(posts), total_pages=1)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching published blog posts: {e}")
        db.rollback()
        return [], Pagination(page=page, limit=limit or 0, total=0, total_pages=0)


@router.get("/")
def home(db: Session = Depends(get_db)):
    """
    Home page data: newest active vehicles and catalog counts.

    Args:
        db: Database session

    Returns:
        dict: Featured vehicles and vehicle statistics
    """
    logger.info("Fetching home page data")
    vehicles = fetch_active_vehicles(db, limit=6)
    return {
        "name": NAME_APP,
        "featured_vehicles": [VehicleOut.model_validate(v) for v in vehicles],
        "stats": count_vehicles(db),
    }


@router.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@router.get("/vehicles", response_model=List[VehicleOut])
def list_vehicles(
    manufacturer: Optional[str] = None,
    vehicle_type: Optional[str] = None,
    fuel_type: Optional[str] = None,
    transmission: Optional[str] = None,
    price_min: Optional[float] = None,
    price_max: Optional[float] = None,
    mileage_max: Optional[int] = None,
    sort: str = "newest",
    db: Session = Depends(get_db)
):
    """
    List active vehicles of the public catalog.

    Args:
        manufacturer: Case-insensitive manufacturer filter
        vehicle_type: Body type filter
        fuel_type: Fuel type filter
        transmission: Transmission filter
        price_min: Minimum selling price
        price_max: Maximum selling price
        mileage_max: Maximum mileage
        sort: newest, price-asc, price-desc or km-asc
        db: Database session

    Returns:
        List[VehicleOut]: Active vehicles, empty if the store is unavailable
    """
    logger.info(f"Fetching public vehicle list (sort={sort})")
    vehicles = fetch_active_vehicles(
        db,
        manufacturer=manufacturer,
        vehicle_type=vehicle_type,
        fuel_type=fuel_type,
        transmission=transmission,
        price_min=price_min,
        price_max=price_max,
        mileage_max=mileage_max,
        sort=sort,
    )
    logger.info(f"Found {len(vehicles)} active vehicles")
    return vehicles


@router.get("/vehicles/{slug}", response_model=VehicleOut)
def get_vehicle(slug: str, db: Session = Depends(get_db)):
    """
    Vehicle detail by slug. Drafts are not public.

    Raises:
        HTTPException: If the vehicle is missing, a draft, or cannot be read
    """
    logger.info(f"Fetching vehicle {slug}")

    try:
        vehicle = db.query(Vehicle).filter(Vehicle.slug == slug).first()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching vehicle {slug}: {e}")
        db.rollback()
        vehicle = None

    if vehicle is None or vehicle.status == VehicleStatus.DRAFT.value:
        logger.warning(f"Vehicle not found: {slug}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Vehicle not found"
        )

    return vehicle


@router.get("/blog", response_model=BlogPostList)
def list_posts(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=20),
    db: Session = Depends(get_db)
):
    """
    List published blog posts, newest first.

    Without a limit all published posts are returned on one page.
    """
    logger.info("Fetching published blog posts")
    posts, pagination = fetch_published_posts(db, page, limit)
    logger.info(f"Found {len(posts)} published blog posts")
    return {"posts": posts, "pagination": pagination}


@router.get("/blog/{slug}", response_model=BlogPostDetail)
def get_post(slug: str, db: Session = Depends(get_db)):
    """
    Published blog post by slug with its previous and next posts.

    Raises:
        HTTPException: If the post is missing or not published
    """
    logger.info(f"Fetching blog post {slug}")

    try:
        post = db.query(BlogPost).filter(BlogPost.slug == slug).first()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching blog post {slug}: {e}")
        db.rollback()
        post = None

    if not post or post.status != BlogStatus.PUBLISHED.value:
        logger.warning(f"Blog post not found: {slug}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Blog post not found"
        )

    published = db.query(BlogPost).filter(BlogPost.status == BlogStatus.PUBLISHED.value)
    previous_post = None
    next_post = None
    if post.published_at is not None:
        try:
            previous_post = published.filter(
                BlogPost.published_at < post.published_at
            ).order_by(BlogPost.published_at.desc()).first()
            next_post = published.filter(
                BlogPost.published_at > post.published_at
            ).order_by(BlogPost.published_at.asc()).first()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching neighbours of blog post {slug}: {e}")
            previous_post = None
            next_post = None

    return {"post": post, "previous": previous_post, "next": next_post}


@router.post("/inquiries", status_code=status.HTTP_201_CREATED, response_model=InquirySubmitted)
def submit_inquiry(inquiry: InquiryCreate, db: Session = Depends(get_db)):
    """
    Store an inquiry from one of the public website forms.

    Args:
        inquiry: Validated form data
        db: Database session

    Returns:
        InquirySubmitted: Confirmation with the stored inquiry

    Raises:
        HTTPException: If the referenced vehicle does not exist or storing fails
    """
    logger.info(f"New {inquiry.type} inquiry from: {inquiry.email}")

    if inquiry.vehicle_id is not None:
        vehicle = db.query(Vehicle).filter(Vehicle.id == inquiry.vehicle_id).first()
        if not vehicle:
            logger.warning(f"Inquiry for unknown vehicle: {inquiry.vehicle_id}")
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Vehicle not found"
            )

    lead = Lead(**inquiry.model_dump())
    db.add(lead)
    commit_or_raise(db, "Inquiry submission")
    db.refresh(lead)

    logger.info(f"Inquiry stored: {lead.id}")
    return {"submitted": True, "inquiry": lead}
