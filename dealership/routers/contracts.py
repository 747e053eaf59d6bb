"""Contract management router for the back-office."""

import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from dealership.database import get_db
from dealership.models import (
    Contract, ContractStatus, ContractType, Customer, CustomerRole, Invoice, User, Vehicle,
    VehicleStatus,
)
from dealership.schemas import ContractCreate, ContractList, ContractOut, ContractUpdate
from dealership.auth import get_current_user, require_admin
from dealership.utils import commit_or_raise, get_or_404, next_number, paginate

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/contracts", tags=["Contracts"])

SORT_COLUMNS = {
    "created_at": Contract.created_at,
    "contract_number": Contract.contract_number,
    "contract_date": Contract.contract_date,
    "price_gross": Contract.price_gross,
}


@router.get("", response_model=ContractList)
def list_contracts(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    type_filter: Optional[ContractType] = Query(None, alias="type"),
    status_filter: Optional[ContractStatus] = Query(None, alias="status"),
    customer_id: Optional[int] = None,
    sort_by: str = Query("created_at", pattern="^(created_at|contract_number|contract_date|price_gross)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    List contracts with pagination and filters.

    The search term is matched against the customer's last name and company
    and the vehicle's manufacturer and model.
    """
    logger.info(f"Listing contracts page {page}")

    query = db.query(Contract)
    if search:
        pattern = f"%{search}%"
        query = query.join(Contract.customer).join(Contract.vehicle).filter(or_(
            Customer.last_name.ilike(pattern),
            Customer.company.ilike(pattern),
            Vehicle.manufacturer.ilike(pattern),
            Vehicle.model.ilike(pattern),
        ))
    if type_filter:
        query = query.filter(Contract.type == type_filter.value)
    if status_filter:
        query = query.filter(Contract.status == status_filter.value)
    if customer_id:
        query = query.filter(Contract.customer_id == customer_id)

    column = SORT_COLUMNS[sort_by]
    ordering = column.asc() if sort_order == "asc" else column.desc()
    contracts, pagination = paginate(query.order_by(ordering, Contract.id.desc()), page, limit)
    return {"contracts": contracts, "pagination": pagination}


@router.get("/stats")
def contract_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Contract counts by status and revenue of completed sales."""
    return compute_contract_stats(db)


def compute_contract_stats(db: Session) -> dict:
    now = datetime.utcnow()
    month_start = datetime(now.year, now.month, 1)
    counts = dict(db.query(Contract.status, func.count(Contract.id)).group_by(Contract.status).all())
    revenue = db.query(func.sum(Contract.price_gross)).filter(
        Contract.status == ContractStatus.COMPLETED.value,
        Contract.type == ContractType.SALE.value,
    ).scalar()

    return {
        "total": sum(counts.values()),
        "draft": counts.get(ContractStatus.DRAFT.value, 0),
        "active": counts.get(ContractStatus.ACTIVE.value, 0),
        "completed": counts.get(ContractStatus.COMPLETED.value, 0),
        "cancelled": counts.get(ContractStatus.CANCELLED.value, 0),
        "this_month": db.query(Contract).filter(Contract.created_at >= month_start).count(),
        "total_revenue": revenue or 0,
    }


@router.get("/{contract_id}", response_model=ContractOut)
def get_contract(
    contract_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return get_or_404(db, Contract, contract_id, "Contract not found")


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ContractOut)
def create_contract(
    contract_data: ContractCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Create a contract.

    A prospect becomes a buyer (sale) or seller (purchase). An active sale
    contract reserves the vehicle.

    Args:
        contract_data: Validated contract fields
        current_user: Authenticated user
        db: Database session

    Returns:
        ContractOut: The created contract

    Raises:
        HTTPException: If customer or vehicle does not exist
    """
    logger.info(f"Creating {contract_data.type} contract for customer {contract_data.customer_id}")

    customer = get_or_404(db, Customer, contract_data.customer_id, "Customer not found")
    vehicle = get_or_404(db, Vehicle, contract_data.vehicle_id, "Vehicle not found")

    fields = contract_data.model_dump()
    if fields["contract_date"] is None:
        fields["contract_date"] = datetime.utcnow()

    contract = Contract(
        **fields,
        contract_number=next_number(db, Contract.contract_number),
        created_by_id=current_user.id,
    )
    db.add(contract)

    if customer.role == CustomerRole.PROSPECT.value:
        is_sale = contract_data.type == ContractType.SALE.value
        customer.role = CustomerRole.BUYER.value if is_sale else CustomerRole.SELLER.value
        logger.info(f"Customer {customer.id} role set to {customer.role}")

    if contract_data.type == ContractType.SALE.value and contract_data.status == ContractStatus.ACTIVE.value:
        vehicle.status = VehicleStatus.RESERVED.value
        logger.info(f"Vehicle {vehicle.id} reserved by contract")

    commit_or_raise(db, "Contract creation")
    db.refresh(contract)

    logger.info(f"Created contract {contract.id} with number {contract.contract_number}")
    return contract


@router.patch("/{contract_id}", response_model=ContractOut)
def update_contract(
    contract_id: int,
    update_data: ContractUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Update a contract.

    Completing a sale contract marks the vehicle sold, cancelling it puts
    the vehicle back on sale.
    """
    logger.info(f"Updating contract {contract_id}")

    contract = get_or_404(db, Contract, contract_id, "Contract not found")
    changes = update_data.model_dump(exclude_unset=True)
    contract_type = contract.type
    vehicle = contract.vehicle

    for field, value in changes.items():
        setattr(contract, field, value)

    new_status = changes.get("status")
    if contract_type == ContractType.SALE.value and new_status in (
        ContractStatus.COMPLETED.value, ContractStatus.CANCELLED.value
    ):
        if new_status == ContractStatus.COMPLETED.value:
            vehicle.status = VehicleStatus.SOLD.value
        else:
            vehicle.status = VehicleStatus.ACTIVE.value
        logger.info(f"Vehicle {vehicle.id} status set to {vehicle.status}")

    commit_or_raise(db, "Contract update")
    db.refresh(contract)

    logger.info(f"Contract {contract_id} updated successfully")
    return contract


@router.delete("/{contract_id}")
def delete_contract(
    contract_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Delete a contract. Administrators only.

    Raises:
        HTTPException: If not found or invoices still reference it
    """
    contract = get_or_404(db, Contract, contract_id, "Contract not found")

    if db.query(Invoice).filter(Invoice.contract_id == contract_id).count() > 0:
        logger.warning(f"Contract {contract_id} still has invoices, not deleting")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Contract still has invoices"
        )

    db.delete(contract)
    commit_or_raise(db, "Contract deletion")

    logger.info(f"Contract {contract_id} deleted by {current_user.email}")
    return {"success": True}
