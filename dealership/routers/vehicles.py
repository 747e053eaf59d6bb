"""Vehicle management router for the back-office."""

import logging
from datetime import datetime, timedelta
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from dealership.database import get_db
from dealership.models import User, Vehicle, VehicleImage, VehicleStatus
from dealership.schemas import (
    VehicleAdminOut, VehicleCreate, VehicleList, VehicleStatusUpdate, VehicleUpdate,
)
from dealership.auth import get_current_user, require_admin
from dealership.utils import commit_or_raise, get_or_404, next_number, paginate, slugify

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/vehicles", tags=["Vehicles"])

SORT_COLUMNS = {
    "created_at": Vehicle.created_at,
    "selling_price": Vehicle.selling_price,
    "mileage": Vehicle.mileage,
    "vehicle_number": Vehicle.vehicle_number,
}


def vehicle_slug(manufacturer: str, model: str, vehicle_number: int) -> str:
    """Slug of a vehicle, unique through its vehicle number."""
    return slugify(f"{manufacturer}-{model}-{vehicle_number}")


def _image_rows(images) -> list:
    return [
        VehicleImage(url=image.url, order=image.order if image.order is not None else index)
        for index, image in enumerate(images)
    ]


@router.get("", response_model=VehicleList)
def list_vehicles(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    manufacturer: Optional[str] = None,
    status_filter: Optional[VehicleStatus] = Query(None, alias="status"),
    sort_by: str = Query("created_at", pattern="^(created_at|selling_price|mileage|vehicle_number)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    List all vehicles with pagination, search and filters.

    Args:
        page: Page number, starting at 1
        limit: Page size, at most 100
        search: Matched against manufacturer, model, variant and title
        manufacturer: Exact manufacturer
        status_filter: Vehicle status
        sort_by: Sort column
        sort_order: asc or desc
        current_user: Authenticated user
        db: Database session

    Returns:
        VehicleList: One page of vehicles
    """
    logger.info(f"Listing vehicles page {page} for user: {current_user.email}")

    query = db.query(Vehicle).options(selectinload(Vehicle.images))
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Vehicle.manufacturer.ilike(pattern),
            Vehicle.model.ilike(pattern),
            Vehicle.variant.ilike(pattern),
            Vehicle.title.ilike(pattern),
        ))
    if manufacturer:
        query = query.filter(Vehicle.manufacturer == manufacturer)
    if status_filter:
        query = query.filter(Vehicle.status == status_filter.value)

    column = SORT_COLUMNS[sort_by]
    ordering = column.asc() if sort_order == "asc" else column.desc()
    query = query.order_by(ordering, Vehicle.id.desc())

    vehicles, pagination = paginate(query, page, limit)
    return {"vehicles": vehicles, "pagination": pagination}


@router.get("/stats")
def vehicle_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Vehicle counts by status and total value of the active stock."""
    return compute_vehicle_stats(db)


def compute_vehicle_stats(db: Session) -> dict:
    counts = dict(
        db.query(Vehicle.status, func.count(Vehicle.id)).group_by(Vehicle.status).all()
    )
    week_ago = datetime.utcnow() - timedelta(days=7)
    total_value = db.query(func.sum(Vehicle.selling_price)).filter(
        Vehicle.status == VehicleStatus.ACTIVE.value
    ).scalar()

    return {
        "total": sum(counts.values()),
        "active": counts.get(VehicleStatus.ACTIVE.value, 0),
        "reserved": counts.get(VehicleStatus.RESERVED.value, 0),
        "sold": counts.get(VehicleStatus.SOLD.value, 0),
        "this_week": db.query(Vehicle).filter(Vehicle.created_at >= week_ago).count(),
        "total_value": total_value or 0,
    }


@router.get("/{vehicle_id}", response_model=VehicleAdminOut)
def get_vehicle(
    vehicle_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Single vehicle with all images."""
    return get_or_404(db, Vehicle, vehicle_id, "Vehicle not found")


@router.post("", status_code=status.HTTP_201_CREATED, response_model=VehicleAdminOut)
def create_vehicle(
    vehicle_data: VehicleCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Create a new vehicle.

    The vehicle number is the next free number and the slug is derived from
    manufacturer, model and that number.

    Args:
        vehicle_data: Validated vehicle fields and images
        current_user: Authenticated user
        db: Database session

    Returns:
        VehicleAdminOut: The created vehicle
    """
    logger.info(f"Creating vehicle {vehicle_data.manufacturer} {vehicle_data.model}")

    fields = vehicle_data.model_dump(exclude={"images"})
    vehicle_number = next_number(db, Vehicle.vehicle_number)

    vehicle = Vehicle(
        **fields,
        vehicle_number=vehicle_number,
        slug=vehicle_slug(vehicle_data.manufacturer, vehicle_data.model, vehicle_number),
        created_by_id=current_user.id,
    )
    vehicle.images = _image_rows(vehicle_data.images)

    db.add(vehicle)
    commit_or_raise(db, "Vehicle creation")
    db.refresh(vehicle)

    logger.info(f"Created vehicle {vehicle.id} with number {vehicle_number}, slug: {vehicle.slug}")
    return vehicle


@router.patch("/{vehicle_id}", response_model=VehicleAdminOut)
def update_vehicle(
    vehicle_id: int,
    update_data: VehicleUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Update vehicle fields. When images are sent they replace the old ones.

    Raises:
        HTTPException: If vehicle not found
    """
    logger.info(f"Updating vehicle {vehicle_id}")

    vehicle = get_or_404(db, Vehicle, vehicle_id, "Vehicle not found")
    changes = update_data.model_dump(exclude_unset=True)
    images = changes.pop("images", None)

    for field, value in changes.items():
        setattr(vehicle, field, value)
        logger.debug(f"Updated {field} for vehicle {vehicle_id}")

    if images is not None:
        vehicle.images = _image_rows(update_data.images)
        logger.debug(f"Replaced images for vehicle {vehicle_id}")

    commit_or_raise(db, "Vehicle update")
    db.refresh(vehicle)

    logger.info(f"Vehicle {vehicle_id} updated successfully")
    return vehicle


@router.patch("/{vehicle_id}/status", response_model=VehicleAdminOut)
def update_vehicle_status(
    vehicle_id: int,
    status_data: VehicleStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Change only the status of a vehicle."""
    vehicle = get_or_404(db, Vehicle, vehicle_id, "Vehicle not found")
    vehicle.status = status_data.status
    commit_or_raise(db, "Vehicle status update")
    db.refresh(vehicle)

    logger.info(f"Vehicle {vehicle_id} status set to {vehicle.status}")
    return vehicle


@router.delete("/{vehicle_id}")
def delete_vehicle(
    vehicle_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Delete a vehicle and its images. Administrators only.

    Raises:
        HTTPException: If vehicle not found
    """
    vehicle = get_or_404(db, Vehicle, vehicle_id, "Vehicle not found")
    db.delete(vehicle)
    commit_or_raise(db, "Vehicle deletion")

    logger.info(f"Vehicle {vehicle_id} deleted by {current_user.email}")
    return {"success": True}
