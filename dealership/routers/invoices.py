"""Invoice management router for the back-office."""

import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from dealership.database import get_db
from dealership.models import (
    Contract, Customer, Invoice, InvoicePosition, InvoiceStatus, User,
)
from dealership.schemas import InvoiceCreate, InvoiceList, InvoiceOut, InvoiceUpdate
from dealership.auth import get_current_user, require_admin
from dealership.utils import commit_or_raise, get_or_404, paginate

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/invoices", tags=["Invoices"])

SORT_COLUMNS = {
    "created_at": Invoice.created_at,
    "invoice_number": Invoice.invoice_number,
    "invoice_date": Invoice.invoice_date,
    "gross_amount": Invoice.gross_amount,
}


def generate_invoice_number(db: Session, year: Optional[int] = None) -> str:
    """
    Next invoice number of the year, formatted RE-<year>-<NNNN>.

    Numbering restarts at 0001 every year.
    """
    year = year or datetime.utcnow().year
    prefix = f"RE-{year}-"

    last_invoice = db.query(Invoice).filter(
        Invoice.invoice_number.like(f"{prefix}%")
    ).order_by(Invoice.invoice_number.desc()).first()

    next_sequence = 1
    if last_invoice:
        next_sequence = int(last_invoice.invoice_number.split("-")[2]) + 1

    return f"{prefix}{next_sequence:04d}"


def _position_rows(positions) -> list:
    return [InvoicePosition(**position.model_dump()) for position in positions]


@router.get("", response_model=InvoiceList)
def list_invoices(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    status_filter: Optional[InvoiceStatus] = Query(None, alias="status"),
    customer_id: Optional[int] = None,
    sort_by: str = Query("created_at", pattern="^(created_at|invoice_number|invoice_date|gross_amount)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List invoices, searchable by number and customer name or company."""
    logger.info(f"Listing invoices page {page}")

    query = db.query(Invoice)
    if search:
        pattern = f"%{search}%"
        query = query.join(Invoice.customer).filter(or_(
            Invoice.invoice_number.ilike(pattern),
            Customer.last_name.ilike(pattern),
            Customer.company.ilike(pattern),
        ))
    if status_filter:
        query = query.filter(Invoice.status == status_filter.value)
    if customer_id:
        query = query.filter(Invoice.customer_id == customer_id)

    column = SORT_COLUMNS[sort_by]
    ordering = column.asc() if sort_order == "asc" else column.desc()
    invoices, pagination = paginate(query.order_by(ordering, Invoice.id.desc()), page, limit)
    return {"invoices": invoices, "pagination": pagination}


@router.get("/stats")
def invoice_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Invoice counts by status, paid revenue and open amount."""
    return compute_invoice_stats(db)


def compute_invoice_stats(db: Session) -> dict:
    now = datetime.utcnow()
    month_start = datetime(now.year, now.month, 1)
    counts = dict(db.query(Invoice.status, func.count(Invoice.id)).group_by(Invoice.status).all())
    amounts = dict(
        db.query(Invoice.status, func.sum(Invoice.gross_amount)).group_by(Invoice.status).all()
    )

    return {
        "total": sum(counts.values()),
        "draft": counts.get(InvoiceStatus.DRAFT.value, 0),
        "open": counts.get(InvoiceStatus.OPEN.value, 0),
        "paid": counts.get(InvoiceStatus.PAID.value, 0),
        "cancelled": counts.get(InvoiceStatus.CANCELLED.value, 0),
        "this_month": db.query(Invoice).filter(Invoice.created_at >= month_start).count(),
        "total_revenue": amounts.get(InvoiceStatus.PAID.value) or 0,
        "open_amount": amounts.get(InvoiceStatus.OPEN.value) or 0,
    }


@router.get("/{invoice_id}", response_model=InvoiceOut)
def get_invoice(
    invoice_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return get_or_404(db, Invoice, invoice_id, "Invoice not found")


@router.post("", status_code=status.HTTP_201_CREATED, response_model=InvoiceOut)
def create_invoice(
    invoice_data: InvoiceCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Create an invoice with its positions.

    Args:
        invoice_data: Validated invoice fields, at least one position
        current_user: Authenticated user
        db: Database session

    Returns:
        InvoiceOut: The created invoice

    Raises:
        HTTPException: If customer or contract does not exist
    """
    logger.info(f"Creating invoice for customer {invoice_data.customer_id}")

    get_or_404(db, Customer, invoice_data.customer_id, "Customer not found")
    if invoice_data.contract_id is not None:
        get_or_404(db, Contract, invoice_data.contract_id, "Contract not found")

    fields = invoice_data.model_dump(exclude={"positions"})
    if fields["invoice_date"] is None:
        fields["invoice_date"] = datetime.utcnow()

    invoice = Invoice(
        **fields,
        invoice_number=generate_invoice_number(db),
        created_by_id=current_user.id,
    )
    invoice.positions = _position_rows(invoice_data.positions)

    db.add(invoice)
    commit_or_raise(db, "Invoice creation")
    db.refresh(invoice)

    logger.info(f"Created invoice {invoice.invoice_number}")
    return invoice


@router.patch("/{invoice_id}", response_model=InvoiceOut)
def update_invoice(
    invoice_id: int,
    update_data: InvoiceUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update an invoice. When positions are sent they replace the old ones."""
    logger.info(f"Updating invoice {invoice_id}")

    invoice = get_or_404(db, Invoice, invoice_id, "Invoice not found")
    changes = update_data.model_dump(exclude_unset=True)
    positions = changes.pop("positions", None)

    for field, value in changes.items():
        setattr(invoice, field, value)

    if positions is not None:
        invoice.positions = _position_rows(update_data.positions)
        logger.debug(f"Replaced positions for invoice {invoice_id}")

    commit_or_raise(db, "Invoice update")
    db.refresh(invoice)

    logger.info(f"Invoice {invoice_id} updated successfully")
    return invoice


@router.post("/{invoice_id}/paid", response_model=InvoiceOut)
def mark_invoice_paid(
    invoice_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Mark an invoice as paid today."""
    invoice = get_or_404(db, Invoice, invoice_id, "Invoice not found")
    invoice.status = InvoiceStatus.PAID.value
    invoice.paid_date = datetime.utcnow()
    commit_or_raise(db, "Invoice payment")
    db.refresh(invoice)

    logger.info(f"Invoice {invoice.invoice_number} marked as paid")
    return invoice


@router.delete("/{invoice_id}")
def delete_invoice(
    invoice_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Delete a draft invoice. Administrators only.

    Raises:
        HTTPException: If not found or not a draft
    """
    invoice = get_or_404(db, Invoice, invoice_id, "Invoice not found")

    if invoice.status != InvoiceStatus.DRAFT.value:
        logger.warning(f"Invoice {invoice_id} is not a draft, not deleting")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Only draft invoices can be deleted"
        )

    db.delete(invoice)
    commit_or_raise(db, "Invoice deletion")

    logger.info(f"Invoice {invoice_id} deleted by {current_user.email}")
    return {"success": True}
