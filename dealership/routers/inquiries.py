"""Inquiry (lead) management router for the back-office."""

import logging
from datetime import datetime, timedelta
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from dealership.database import get_db
from dealership.models import (
    Customer, CustomerRole, CustomerType, Lead, LeadStatus, LeadType, User,
)
from dealership.schemas import CustomerOut, LeadList, LeadOut, LeadStatusUpdate
from dealership.auth import get_current_user
from dealership.utils import commit_or_raise, get_or_404, next_number, paginate

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/inquiries", tags=["Inquiries"])

SORT_COLUMNS = {
    "created_at": Lead.created_at,
    "name": Lead.name,
    "type": Lead.type,
}


def split_name(full_name: str):
    """Split a full name into first and last name; the last word is the last name."""
    parts = full_name.strip().split()
    if len(parts) > 1:
        return " ".join(parts[:-1]), parts[-1]
    return None, parts[0] if parts else full_name


@router.get("", response_model=LeadList)
def list_inquiries(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    type_filter: Optional[LeadType] = Query(None, alias="type"),
    status_filter: Optional[LeadStatus] = Query(None, alias="status"),
    sort_by: str = Query("created_at", pattern="^(created_at|name|type)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List inquiries, searchable by name, email, phone and message."""
    logger.info(f"Listing inquiries page {page}")

    query = db.query(Lead)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Lead.name.ilike(pattern),
            Lead.email.ilike(pattern),
            Lead.phone.ilike(pattern),
            Lead.message.ilike(pattern),
        ))
    if type_filter:
        query = query.filter(Lead.type == type_filter.value)
    if status_filter:
        query = query.filter(Lead.status == status_filter.value)

    column = SORT_COLUMNS[sort_by]
    ordering = column.asc() if sort_order == "asc" else column.desc()
    leads, pagination = paginate(query.order_by(ordering, Lead.id.desc()), page, limit)
    return {"leads": leads, "pagination": pagination}


@router.get("/stats")
def inquiry_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Inquiry counts by status and type, today and this week."""
    return compute_inquiry_stats(db)


def compute_inquiry_stats(db: Session) -> dict:
    now = datetime.utcnow()
    today = datetime(now.year, now.month, now.day)
    week_ago = now - timedelta(days=7)
    by_status = dict(db.query(Lead.status, func.count(Lead.id)).group_by(Lead.status).all())
    by_type = dict(db.query(Lead.type, func.count(Lead.id)).group_by(Lead.type).all())

    return {
        "total": sum(by_status.values()),
        "new": by_status.get(LeadStatus.NEW.value, 0),
        "in_progress": by_status.get(LeadStatus.IN_PROGRESS.value, 0),
        "closed": by_status.get(LeadStatus.CLOSED.value, 0),
        "today": db.query(Lead).filter(Lead.created_at >= today).count(),
        "this_week": db.query(Lead).filter(Lead.created_at >= week_ago).count(),
        "by_type": by_type,
    }


@router.get("/{lead_id}", response_model=LeadOut)
def get_inquiry(
    lead_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return get_or_404(db, Lead, lead_id, "Inquiry not found")


@router.patch("/{lead_id}/status", response_model=LeadOut)
def update_inquiry_status(
    lead_id: int,
    status_data: LeadStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Move an inquiry through new, in progress and closed."""
    lead = get_or_404(db, Lead, lead_id, "Inquiry not found")
    lead.status = status_data.status
    commit_or_raise(db, "Inquiry status update")
    db.refresh(lead)

    logger.info(f"Inquiry {lead_id} status set to {lead.status}")
    return lead


@router.delete("/{lead_id}")
def delete_inquiry(
    lead_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    lead = get_or_404(db, Lead, lead_id, "Inquiry not found")
    db.delete(lead)
    commit_or_raise(db, "Inquiry deletion")

    logger.info(f"Inquiry {lead_id} deleted by {current_user.email}")
    return {"success": True}


@router.post("/{lead_id}/convert", response_model=CustomerOut)
def convert_inquiry(
    lead_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Turn an inquiry into a private customer and close the inquiry.

    Purchase inquiries come from people selling a car, so they become
    sellers. Everyone else becomes a prospect.

    Returns:
        CustomerOut: The created customer
    """
    lead = get_or_404(db, Lead, lead_id, "Inquiry not found")
    first_name, last_name = split_name(lead.name)

    role = CustomerRole.SELLER if lead.type == LeadType.PURCHASE_INQUIRY.value else CustomerRole.PROSPECT
    customer = Customer(
        customer_number=next_number(db, Customer.customer_number),
        type=CustomerType.PRIVATE.value,
        role=role.value,
        first_name=first_name,
        last_name=last_name,
        email=lead.email,
        phone=lead.phone,
        notes=f"Converted from {lead.type}: {lead.message}",
    )
    db.add(customer)
    lead.status = LeadStatus.CLOSED.value

    commit_or_raise(db, "Inquiry conversion")
    db.refresh(customer)

    logger.info(f"Inquiry {lead_id} converted to customer {customer.id}")
    return customer
