"""Customer management router for the back-office."""

import logging
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from dealership.database import get_db
from dealership.models import (
    Contract, Customer, CustomerRole, CustomerType, Invoice, User,
)
from dealership.schemas import (
    CustomerCreate, CustomerDetail, CustomerList, CustomerOut, CustomerSearchResult, CustomerUpdate,
)
from dealership.auth import get_current_user, require_admin
from dealership.utils import commit_or_raise, get_or_404, next_number, paginate

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/customers", tags=["Customers"])

SORT_COLUMNS = {
    "created_at": Customer.created_at,
    "customer_number": Customer.customer_number,
    "last_name": Customer.last_name,
}


def _search_filter(term: str):
    pattern = f"%{term}%"
    return or_(
        Customer.first_name.ilike(pattern),
        Customer.last_name.ilike(pattern),
        Customer.company.ilike(pattern),
        Customer.email.ilike(pattern),
        Customer.phone.ilike(pattern),
    )


def related_counts(db: Session, customer_id: int) -> dict:
    """Number of contracts and invoices referencing a customer."""
    return {
        "contract_count": db.query(Contract).filter(Contract.customer_id == customer_id).count(),
        "invoice_count": db.query(Invoice).filter(Invoice.customer_id == customer_id).count(),
    }


@router.get("", response_model=CustomerList)
def list_customers(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    type_filter: Optional[CustomerType] = Query(None, alias="type"),
    role: Optional[CustomerRole] = None,
    sort_by: str = Query("created_at", pattern="^(created_at|customer_number|last_name)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    List customers with pagination, search and filters.

    Each customer carries its number of contracts and invoices.
    """
    logger.info(f"Listing customers page {page}")

    query = db.query(Customer)
    if search:
        query = query.filter(_search_filter(search))
    if type_filter:
        query = query.filter(Customer.type == type_filter.value)
    if role:
        query = query.filter(Customer.role == role.value)

    column = SORT_COLUMNS[sort_by]
    ordering = column.asc() if sort_order == "asc" else column.desc()
    customers, pagination = paginate(query.order_by(ordering, Customer.id.desc()), page, limit)

    items = [
        {**CustomerOut.model_validate(c).model_dump(), **related_counts(db, c.id)}
        for c in customers
    ]
    return {"customers": items, "pagination": pagination}


@router.get("/search", response_model=List[CustomerSearchResult])
def search_customers(
    query: str = Query(..., min_length=1),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Autocomplete search, at most 10 results."""
    pattern = f"%{query}%"
    return db.query(Customer).filter(or_(
        Customer.first_name.ilike(pattern),
        Customer.last_name.ilike(pattern),
        Customer.company.ilike(pattern),
        Customer.email.ilike(pattern),
    )).order_by(Customer.last_name).limit(10).all()


@router.get("/stats")
def customer_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Customer counts by type and role, and new customers this month."""
    return compute_customer_stats(db)


def compute_customer_stats(db: Session) -> dict:
    now = datetime.utcnow()
    month_start = datetime(now.year, now.month, 1)
    by_type = dict(db.query(Customer.type, func.count(Customer.id)).group_by(Customer.type).all())
    by_role = dict(db.query(Customer.role, func.count(Customer.id)).group_by(Customer.role).all())

    return {
        "total": sum(by_type.values()),
        "private": by_type.get(CustomerType.PRIVATE.value, 0),
        "business": by_type.get(CustomerType.BUSINESS.value, 0),
        "buyers": by_role.get(CustomerRole.BUYER.value, 0),
        "sellers": by_role.get(CustomerRole.SELLER.value, 0),
        "this_month": db.query(Customer).filter(Customer.created_at >= month_start).count(),
    }


@router.get("/{customer_id}", response_model=CustomerDetail)
def get_customer(
    customer_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Customer with the 10 most recent contracts and invoices."""
    customer = get_or_404(db, Customer, customer_id, "Customer not found")

    contracts = db.query(Contract).filter(
        Contract.customer_id == customer_id
    ).order_by(Contract.created_at.desc()).limit(10).all()
    invoices = db.query(Invoice).filter(
        Invoice.customer_id == customer_id
    ).order_by(Invoice.created_at.desc()).limit(10).all()

    return {
        **CustomerOut.model_validate(customer).model_dump(),
        "contracts": contracts,
        "invoices": invoices,
        **related_counts(db, customer_id),
    }


@router.post("", status_code=status.HTTP_201_CREATED, response_model=CustomerOut)
def create_customer(
    customer_data: CustomerCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a customer with the next customer number."""
    logger.info(f"Creating customer: {customer_data.last_name}")

    customer = Customer(
        **customer_data.model_dump(),
        customer_number=next_number(db, Customer.customer_number),
    )
    db.add(customer)
    commit_or_raise(db, "Customer creation")
    db.refresh(customer)

    logger.info(f"Created customer {customer.id} with number {customer.customer_number}")
    return customer


@router.patch("/{customer_id}", response_model=CustomerOut)
def update_customer(
    customer_id: int,
    update_data: CustomerUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update customer fields. An empty email clears the address."""
    logger.info(f"Updating customer {customer_id}")

    customer = get_or_404(db, Customer, customer_id, "Customer not found")
    for field, value in update_data.model_dump(exclude_unset=True).items():
        setattr(customer, field, value)

    commit_or_raise(db, "Customer update")
    db.refresh(customer)

    logger.info(f"Customer {customer_id} updated successfully")
    return customer


@router.delete("/{customer_id}")
def delete_customer(
    customer_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Delete a customer. Administrators only.

    Raises:
        HTTPException: If not found, or contracts or invoices still reference it
    """
    customer = get_or_404(db, Customer, customer_id, "Customer not found")

    counts = related_counts(db, customer_id)
    if counts["contract_count"] > 0 or counts["invoice_count"] > 0:
        logger.warning(f"Customer {customer_id} still has contracts or invoices, not deleting")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Customer still has contracts or invoices"
        )

    db.delete(customer)
    commit_or_raise(db, "Customer deletion")

    logger.info(f"Customer {customer_id} deleted by {current_user.email}")
    return {"success": True}
