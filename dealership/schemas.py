"""Pydantic schemas for request and response validation."""

from datetime import datetime, date
from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from dealership.models import (
    BlogStatus, ContractStatus, ContractType, CustomerRole, CustomerType,
    DriveType, FuelType, InvoiceStatus, LeadStatus, LeadType, Transmission,
    VatType, VehicleCondition, VehicleStatus, VehicleType,
)


class InputModel(BaseModel):
    """Base for request bodies, enums are dumped as their plain values."""

    class Config:
        use_enum_values = True


class OutputModel(BaseModel):
    """Base for responses built from ORM objects."""

    class Config:
        from_attributes = True


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


# Auth Schemas
class UserLogin(BaseModel):
    """
    Schema for login request.

    Both fields may be absent so that a missing field is rejected the same
    way as wrong credentials.
    """

    email: Optional[str] = None
    password: Optional[str] = None


class UserOut(OutputModel):
    id: int
    email: str
    name: Optional[str] = None
    role: str
    last_login: Optional[datetime] = None


class Token(BaseModel):
    """Schema for session token response."""

    access_token: str
    token_type: str
    user: UserOut


class LoginScreen(BaseModel):
    page: str = "login"
    authenticated: bool
    callback_url: Optional[str] = None


class PasswordChange(InputModel):
    current_password: str
    new_password: str = Field(min_length=8)


# Vehicle Schemas
class VehicleImageIn(InputModel):
    url: str
    order: Optional[int] = None


class VehicleImageOut(OutputModel):
    id: int
    url: str
    order: int


class VehicleCreate(InputModel):
    """Schema for vehicle creation request."""

    manufacturer: str = Field(min_length=1)
    model: str = Field(min_length=1)
    variant: Optional[str] = None
    vehicle_type: VehicleType = VehicleType.CAR
    condition: VehicleCondition = VehicleCondition.USED
    status: VehicleStatus = VehicleStatus.DRAFT
    vin: Optional[str] = None
    hsn: Optional[str] = None
    tsn: Optional[str] = None
    license_plate: Optional[str] = None
    first_registration: Optional[date] = None
    mileage: int = Field(default=0, ge=0)
    previous_owners: int = Field(default=0, ge=0)
    fuel_type: Optional[FuelType] = None
    transmission: Optional[Transmission] = None
    power_kw: Optional[int] = Field(default=None, ge=0)
    power_ps: Optional[int] = Field(default=None, ge=0)
    displacement: Optional[int] = Field(default=None, ge=0)
    drive_type: Optional[DriveType] = None
    exterior_color: Optional[str] = None
    interior_color: Optional[str] = None
    doors: Optional[int] = Field(default=None, ge=2, le=5)
    seats: Optional[int] = Field(default=None, ge=2, le=9)
    features: List[str] = []
    purchase_price: Optional[float] = Field(default=None, ge=0)
    selling_price: float = Field(ge=0)
    vat_type: VatType = VatType.VAT
    title: Optional[str] = None
    description: Optional[str] = None
    export_mobile_de: bool = False
    export_autoscout: bool = False
    images: List[VehicleImageIn] = []


class VehicleUpdate(InputModel):
    """Schema for vehicle update request, only sent fields are changed."""

    manufacturer: Optional[str] = Field(default=None, min_length=1)
    model: Optional[str] = Field(default=None, min_length=1)
    variant: Optional[str] = None
    vehicle_type: Optional[VehicleType] = None
    condition: Optional[VehicleCondition] = None
    status: Optional[VehicleStatus] = None
    vin: Optional[str] = None
    hsn: Optional[str] = None
    tsn: Optional[str] = None
    license_plate: Optional[str] = None
    first_registration: Optional[date] = None
    mileage: Optional[int] = Field(default=None, ge=0)
    previous_owners: Optional[int] = Field(default=None, ge=0)
    fuel_type: Optional[FuelType] = None
    transmission: Optional[Transmission] = None
    power_kw: Optional[int] = Field(default=None, ge=0)
    power_ps: Optional[int] = Field(default=None, ge=0)
    displacement: Optional[int] = Field(default=None, ge=0)
    drive_type: Optional[DriveType] = None
    exterior_color: Optional[str] = None
    interior_color: Optional[str] = None
    doors: Optional[int] = Field(default=None, ge=2, le=5)
    seats: Optional[int] = Field(default=None, ge=2, le=9)
    features: Optional[List[str]] = None
    purchase_price: Optional[float] = Field(default=None, ge=0)
    selling_price: Optional[float] = Field(default=None, ge=0)
    vat_type: Optional[VatType] = None
    title: Optional[str] = None
    description: Optional[str] = None
    export_mobile_de: Optional[bool] = None
    export_autoscout: Optional[bool] = None
    images: Optional[List[VehicleImageIn]] = None


class VehicleStatusUpdate(InputModel):
    status: VehicleStatus


class VehicleOut(OutputModel):
    id: int
    vehicle_number: int
    slug: str
    manufacturer: str
    model: str
    variant: Optional[str] = None
    vehicle_type: str
    condition: str
    status: str
    vin: Optional[str] = None
    hsn: Optional[str] = None
    tsn: Optional[str] = None
    license_plate: Optional[str] = None
    first_registration: Optional[date] = None
    mileage: int
    previous_owners: int
    fuel_type: Optional[str] = None
    transmission: Optional[str] = None
    power_kw: Optional[int] = None
    power_ps: Optional[int] = None
    displacement: Optional[int] = None
    drive_type: Optional[str] = None
    exterior_color: Optional[str] = None
    interior_color: Optional[str] = None
    doors: Optional[int] = None
    seats: Optional[int] = None
    features: List[str] = []
    selling_price: float
    vat_type: str
    title: Optional[str] = None
    description: Optional[str] = None
    images: List[VehicleImageOut] = []
    created_at: datetime
    updated_at: datetime


class VehicleAdminOut(VehicleOut):
    """Back-office view, includes purchase data."""

    purchase_price: Optional[float] = None
    export_mobile_de: bool
    export_autoscout: bool
    created_by_id: Optional[int] = None


class VehicleSummary(OutputModel):
    id: int
    vehicle_number: int
    slug: str
    manufacturer: str
    model: str


class VehicleList(BaseModel):
    vehicles: List[VehicleAdminOut]
    pagination: Pagination


# Customer Schemas
def _empty_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


class CustomerCreate(InputModel):
    """Schema for customer creation request."""

    type: CustomerType = CustomerType.PRIVATE
    role: CustomerRole = CustomerRole.PROSPECT
    company: Optional[str] = None
    salutation: Optional[str] = None
    first_name: Optional[str] = None
    last_name: str = Field(min_length=1)
    street: Optional[str] = None
    zip_code: Optional[str] = None
    city: Optional[str] = None
    country: str = "Deutschland"
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    notes: Optional[str] = None

    @field_validator('email', mode='before')
    @classmethod
    def empty_email_is_none(cls, v):
        """An empty email field means no email."""
        return _empty_to_none(v)


class CustomerUpdate(InputModel):
    """Schema for customer update request."""

    type: Optional[CustomerType] = None
    role: Optional[CustomerRole] = None
    company: Optional[str] = None
    salutation: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = Field(default=None, min_length=1)
    street: Optional[str] = None
    zip_code: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    notes: Optional[str] = None

    @field_validator('email', mode='before')
    @classmethod
    def empty_email_is_none(cls, v):
        return _empty_to_none(v)


class CustomerOut(OutputModel):
    id: int
    customer_number: int
    type: str
    role: str
    company: Optional[str] = None
    salutation: Optional[str] = None
    first_name: Optional[str] = None
    last_name: str
    street: Optional[str] = None
    zip_code: Optional[str] = None
    city: Optional[str] = None
    country: str
    phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CustomerListItem(CustomerOut):
    contract_count: int = 0
    invoice_count: int = 0


class CustomerSearchResult(OutputModel):
    id: int
    customer_number: int
    type: str
    company: Optional[str] = None
    first_name: Optional[str] = None
    last_name: str
    email: Optional[str] = None


class CustomerList(BaseModel):
    customers: List[CustomerListItem]
    pagination: Pagination


# Contract Schemas
class ContractCreate(InputModel):
    """Schema for contract creation request."""

    type: ContractType
    customer_id: int
    vehicle_id: int
    price_net: float = Field(ge=0)
    vat: float = Field(ge=0)
    price_gross: float = Field(ge=0)
    deposit: float = Field(default=0, ge=0)
    contract_date: Optional[datetime] = None
    delivery_date: Optional[datetime] = None
    payment_terms: Optional[str] = None
    notes: Optional[str] = None
    is_accident_free: bool = True
    reduced_liability: bool = False
    has_warranty: bool = False
    status: ContractStatus = ContractStatus.DRAFT


class ContractUpdate(InputModel):
    """Schema for contract update request."""

    price_net: Optional[float] = Field(default=None, ge=0)
    vat: Optional[float] = Field(default=None, ge=0)
    price_gross: Optional[float] = Field(default=None, ge=0)
    deposit: Optional[float] = Field(default=None, ge=0)
    contract_date: Optional[datetime] = None
    delivery_date: Optional[datetime] = None
    payment_terms: Optional[str] = None
    notes: Optional[str] = None
    is_accident_free: Optional[bool] = None
    reduced_liability: Optional[bool] = None
    has_warranty: Optional[bool] = None
    status: Optional[ContractStatus] = None


class ContractOut(OutputModel):
    id: int
    contract_number: int
    type: str
    customer_id: int
    vehicle_id: int
    price_net: float
    vat: float
    price_gross: float
    deposit: float
    contract_date: datetime
    delivery_date: Optional[datetime] = None
    payment_terms: Optional[str] = None
    notes: Optional[str] = None
    is_accident_free: bool
    reduced_liability: bool
    has_warranty: bool
    status: str
    created_by_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    vehicle: Optional[VehicleSummary] = None


class ContractList(BaseModel):
    contracts: List[ContractOut]
    pagination: Pagination


# Invoice Schemas
class InvoicePositionIn(InputModel):
    description: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=1)
    unit_price: float = Field(ge=0)
    total: float = Field(ge=0)


class InvoicePositionOut(OutputModel):
    id: int
    description: str
    quantity: int
    unit_price: float
    total: float


class InvoiceCreate(InputModel):
    """Schema for invoice creation request."""

    customer_id: int
    contract_id: Optional[int] = None
    net_amount: float = Field(ge=0)
    vat_amount: float = Field(ge=0)
    gross_amount: float = Field(ge=0)
    invoice_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    status: InvoiceStatus = InvoiceStatus.DRAFT
    positions: List[InvoicePositionIn] = Field(min_length=1)


class InvoiceUpdate(InputModel):
    """Schema for invoice update request."""

    contract_id: Optional[int] = None
    net_amount: Optional[float] = Field(default=None, ge=0)
    vat_amount: Optional[float] = Field(default=None, ge=0)
    gross_amount: Optional[float] = Field(default=None, ge=0)
    invoice_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    status: Optional[InvoiceStatus] = None
    positions: Optional[List[InvoicePositionIn]] = None


class InvoiceOut(OutputModel):
    id: int
    invoice_number: str
    customer_id: int
    contract_id: Optional[int] = None
    net_amount: float
    vat_amount: float
    gross_amount: float
    invoice_date: datetime
    due_date: Optional[datetime] = None
    paid_date: Optional[datetime] = None
    status: str
    created_by_id: Optional[int] = None
    positions: List[InvoicePositionOut] = []
    created_at: datetime
    updated_at: datetime


class InvoiceList(BaseModel):
    invoices: List[InvoiceOut]
    pagination: Pagination


class CustomerDetail(CustomerOut):
    contracts: List[ContractOut] = []
    invoices: List[InvoiceOut] = []
    contract_count: int = 0
    invoice_count: int = 0


# Inquiry Schemas
class InquiryCreate(InputModel):
    """Schema for the public inquiry forms."""

    type: LeadType = LeadType.VEHICLE_INQUIRY
    name: str = Field(min_length=2)
    email: EmailStr
    phone: Optional[str] = None
    message: str = Field(min_length=10)
    vehicle_id: Optional[int] = None


class LeadStatusUpdate(InputModel):
    status: LeadStatus


class LeadOut(OutputModel):
    id: int
    type: str
    name: str
    email: str
    phone: Optional[str] = None
    message: str
    vehicle_id: Optional[int] = None
    status: str
    created_at: datetime
    vehicle: Optional[VehicleSummary] = None


class InquirySubmitted(BaseModel):
    submitted: bool = True
    inquiry: LeadOut


class LeadList(BaseModel):
    leads: List[LeadOut]
    pagination: Pagination


# Blog Post Schemas
class BlogPostCreate(InputModel):
    """Schema for blog post creation request."""

    title: str = Field(min_length=1)
    excerpt: Optional[str] = None
    content: str = Field(min_length=1)
    featured_image: Optional[str] = None
    status: BlogStatus = BlogStatus.DRAFT
    published_at: Optional[datetime] = None


class BlogPostUpdate(InputModel):
    """Schema for blog post update request."""

    title: Optional[str] = Field(default=None, min_length=1)
    excerpt: Optional[str] = None
    content: Optional[str] = Field(default=None, min_length=1)
    featured_image: Optional[str] = None
    status: Optional[BlogStatus] = None
    published_at: Optional[datetime] = None


class BlogPostOut(OutputModel):
    id: int
    slug: str
    title: str
    excerpt: Optional[str] = None
    content: str
    featured_image: Optional[str] = None
    status: str
    published_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class BlogPostLink(OutputModel):
    slug: str
    title: str


class BlogPostDetail(BaseModel):
    """Published post with links to its neighbours."""

    post: BlogPostOut
    previous: Optional[BlogPostLink] = None
    next: Optional[BlogPostLink] = None


class BlogPostList(BaseModel):
    posts: List[BlogPostOut]
    pagination: Pagination
