"""Database models for the dealership API."""

import enum
from datetime import datetime
from sqlalchemy import (
    Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, JSON, String, Text
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    STAFF = "staff"


class VehicleStatus(str, enum.Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    RESERVED = "reserved"
    SOLD = "sold"


class VehicleType(str, enum.Enum):
    CAR = "car"
    SUV = "suv"
    ESTATE = "estate"
    COUPE = "coupe"
    CONVERTIBLE = "convertible"
    SEDAN = "sedan"
    VAN = "van"


class VehicleCondition(str, enum.Enum):
    NEW = "new"
    USED = "used"
    YEAR_OLD = "year_old"
    DEMONSTRATION = "demonstration"


class FuelType(str, enum.Enum):
    PETROL = "petrol"
    DIESEL = "diesel"
    ELECTRIC = "electric"
    HYBRID = "hybrid"
    LPG = "lpg"


class Transmission(str, enum.Enum):
    AUTOMATIC = "automatic"
    MANUAL = "manual"


class DriveType(str, enum.Enum):
    FRONT = "front"
    REAR = "rear"
    ALL_WHEEL = "all_wheel"


class VatType(str, enum.Enum):
    VAT = "vat"
    MARGIN = "margin"


class CustomerType(str, enum.Enum):
    PRIVATE = "private"
    BUSINESS = "business"


class CustomerRole(str, enum.Enum):
    PROSPECT = "prospect"
    BUYER = "buyer"
    SELLER = "seller"


class ContractType(str, enum.Enum):
    SALE = "sale"
    PURCHASE = "purchase"


class ContractStatus(str, enum.Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class InvoiceStatus(str, enum.Enum):
    DRAFT = "draft"
    OPEN = "open"
    PAID = "paid"
    CANCELLED = "cancelled"


class LeadType(str, enum.Enum):
    VEHICLE_INQUIRY = "vehicle_inquiry"
    PURCHASE_INQUIRY = "purchase_inquiry"
    CONTACT = "contact"


class LeadStatus(str, enum.Enum):
    NEW = "new"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"


class BlogStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class User(Base):
    """User model for back-office authentication."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, default=UserRole.STAFF.value, nullable=False)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class Vehicle(Base):
    """Vehicle catalog record."""

    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_number = Column(Integer, unique=True, nullable=False, index=True)
    slug = Column(String, unique=True, nullable=False, index=True)
    manufacturer = Column(String, nullable=False)
    model = Column(String, nullable=False)
    variant = Column(String, nullable=True)
    vehicle_type = Column(String, default=VehicleType.CAR.value, nullable=False)
    condition = Column(String, default=VehicleCondition.USED.value, nullable=False)
    status = Column(String, default=VehicleStatus.DRAFT.value, nullable=False, index=True)

    vin = Column(String, nullable=True)
    hsn = Column(String, nullable=True)
    tsn = Column(String, nullable=True)
    license_plate = Column(String, nullable=True)
    first_registration = Column(Date, nullable=True)
    mileage = Column(Integer, default=0, nullable=False)
    previous_owners = Column(Integer, default=0, nullable=False)

    fuel_type = Column(String, nullable=True)
    transmission = Column(String, nullable=True)
    power_kw = Column(Integer, nullable=True)
    power_ps = Column(Integer, nullable=True)
    displacement = Column(Integer, nullable=True)
    drive_type = Column(String, nullable=True)
    exterior_color = Column(String, nullable=True)
    interior_color = Column(String, nullable=True)
    doors = Column(Integer, nullable=True)
    seats = Column(Integer, nullable=True)
    features = Column(JSON, default=list, nullable=False)

    purchase_price = Column(Float, nullable=True)
    selling_price = Column(Float, nullable=False)
    vat_type = Column(String, default=VatType.VAT.value, nullable=False)

    title = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    export_mobile_de = Column(Boolean, default=False, nullable=False)
    export_autoscout = Column(Boolean, default=False, nullable=False)

    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    images = relationship(
        "VehicleImage",
        back_populates="vehicle",
        order_by="VehicleImage.order",
        cascade="all, delete-orphan",
    )
    created_by = relationship("User")


class VehicleImage(Base):
    """Ordered image attached to a vehicle."""

    __tablename__ = "vehicle_images"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False)
    url = Column(String, nullable=False)
    order = Column(Integer, default=0, nullable=False)

    vehicle = relationship("Vehicle", back_populates="images")


class Customer(Base):
    """Customer (private or business) of the dealership."""

    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_number = Column(Integer, unique=True, nullable=False, index=True)
    type = Column(String, default=CustomerType.PRIVATE.value, nullable=False)
    role = Column(String, default=CustomerRole.PROSPECT.value, nullable=False)
    company = Column(String, nullable=True)
    salutation = Column(String, nullable=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=False)
    street = Column(String, nullable=True)
    zip_code = Column(String, nullable=True)
    city = Column(String, nullable=True)
    country = Column(String, default="Deutschland", nullable=False)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    contracts = relationship("Contract", back_populates="customer")
    invoices = relationship("Invoice", back_populates="customer")


class Contract(Base):
    """Sale or purchase contract between the dealership and a customer."""

    __tablename__ = "contracts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    contract_number = Column(Integer, unique=True, nullable=False, index=True)
    type = Column(String, nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)
    price_net = Column(Float, nullable=False)
    vat = Column(Float, nullable=False)
    price_gross = Column(Float, nullable=False)
    deposit = Column(Float, default=0, nullable=False)
    contract_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    delivery_date = Column(DateTime, nullable=True)
    payment_terms = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    is_accident_free = Column(Boolean, default=True, nullable=False)
    reduced_liability = Column(Boolean, default=False, nullable=False)
    has_warranty = Column(Boolean, default=False, nullable=False)
    status = Column(String, default=ContractStatus.DRAFT.value, nullable=False)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    customer = relationship("Customer", back_populates="contracts")
    vehicle = relationship("Vehicle")
    invoices = relationship("Invoice", back_populates="contract")


class Invoice(Base):
    """Invoice issued to a customer."""

    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    invoice_number = Column(String, unique=True, nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    contract_id = Column(Integer, ForeignKey("contracts.id"), nullable=True)
    net_amount = Column(Float, nullable=False)
    vat_amount = Column(Float, nullable=False)
    gross_amount = Column(Float, nullable=False)
    invoice_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    due_date = Column(DateTime, nullable=True)
    paid_date = Column(DateTime, nullable=True)
    status = Column(String, default=InvoiceStatus.DRAFT.value, nullable=False)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    customer = relationship("Customer", back_populates="invoices")
    contract = relationship("Contract", back_populates="invoices")
    positions = relationship(
        "InvoicePosition",
        back_populates="invoice",
        order_by="InvoicePosition.id",
        cascade="all, delete-orphan",
    )


class InvoicePosition(Base):
    """Single line item of an invoice."""

    __tablename__ = "invoice_positions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False)
    description = Column(String, nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    unit_price = Column(Float, nullable=False)
    total = Column(Float, nullable=False)

    invoice = relationship("Invoice", back_populates="positions")


class Lead(Base):
    """Inquiry submitted through one of the public website forms."""

    __tablename__ = "leads"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String, nullable=False)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    message = Column(Text, nullable=False)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="SET NULL"), nullable=True)
    status = Column(String, default=LeadStatus.NEW.value, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    vehicle = relationship("Vehicle")


class BlogPost(Base):
    """Blog post model."""

    __tablename__ = "blog_posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slug = Column(String, unique=True, nullable=False, index=True)
    title = Column(String, nullable=False)
    excerpt = Column(String, nullable=True)
    content = Column(Text, nullable=False)
    featured_image = Column(String, nullable=True)
    status = Column(String, default=BlogStatus.DRAFT.value, nullable=False, index=True)
    published_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
