"""Admin router for the dashboard and the vehicle marketplace export."""

import csv
import io
import logging
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session, selectinload

from dealership.database import get_db
from dealership.models import User, Vehicle, VehicleStatus
from dealership.auth import get_current_user
from dealership.routers.blog import compute_blog_stats
from dealership.routers.contracts import compute_contract_stats
from dealership.routers.customers import compute_customer_stats
from dealership.routers.inquiries import compute_inquiry_stats
from dealership.routers.invoices import compute_invoice_stats
from dealership.routers.vehicles import compute_vehicle_stats

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])

MAX_EXPORT_IMAGES = 10

MOBILE_DE_HEADERS = [
    "Fahrzeugnummer", "Hersteller", "Modell", "Variante", "Fahrzeugtyp", "Zustand",
    "Preis", "MwSt", "Erstzulassung", "Kilometerstand", "Kraftstoff", "Getriebe",
    "Leistung_KW", "Leistung_PS", "Hubraum", "Antrieb", "Außenfarbe", "Innenfarbe",
    "Türen", "Sitze", "Vorbesitzer", "FIN", "HSN", "TSN", "Kurztitel", "Beschreibung",
    "Ausstattung",
] + [f"Bild{i}" for i in range(1, MAX_EXPORT_IMAGES + 1)]

AUTOSCOUT_HEADERS = [
    "dealer_vehicle_id", "make", "model", "model_variant", "category", "condition",
    "price", "vat", "first_registration_year", "first_registration_month", "mileage",
    "fuel_type", "gearbox", "power_kw", "power_hp", "cubic_capacity", "drive_type",
    "exterior_color", "interior_color", "doors", "seats", "previous_owners", "vin",
    "title", "description", "equipment",
] + [f"image_url_{i}" for i in range(1, MAX_EXPORT_IMAGES + 1)]

# Internal value -> (mobile.de label, AutoScout24 label)
FUEL_TYPE_LABELS = {
    "petrol": ("Benzin", "Petrol"),
    "diesel": ("Diesel", "Diesel"),
    "electric": ("Elektro", "Electric"),
    "hybrid": ("Hybrid", "Hybrid"),
    "lpg": ("LPG", "LPG"),
}
TRANSMISSION_LABELS = {
    "automatic": ("Automatik", "Automatic"),
    "manual": ("Schaltgetriebe", "Manual"),
}
VEHICLE_TYPE_LABELS = {
    "car": ("Limousine", "Sedan"),
    "suv": ("SUV/Geländewagen", "SUV"),
    "estate": ("Kombi", "Station wagon"),
    "coupe": ("Coupé", "Coupe"),
    "convertible": ("Cabrio", "Convertible"),
    "sedan": ("Limousine", "Sedan"),
    "van": ("Van/Kleinbus", "Van"),
}
CONDITION_LABELS = {
    "new": ("Neufahrzeug", "New"),
    "used": ("Gebraucht", "Used"),
    "year_old": ("Jahreswagen", "Used"),
    "demonstration": ("Vorführfahrzeug", "Demonstration"),
}
DRIVE_TYPE_LABELS = {
    "front": ("Vorderrad", "Front"),
    "rear": ("Hinterrad", "Rear"),
    "all_wheel": ("Allrad", "4WD"),
}

MOBILE = 0
AUTOSCOUT = 1


def _label(labels: dict, value: Optional[str], target: int, fallback: str = "") -> str:
    if value in labels:
        return labels[value][target]
    return fallback


def _value(value) -> str:
    return "" if value is None else str(value)


def _price(value: float) -> str:
    """Price with cents where present, never rounded or in exponent notation."""
    return f"{value:.2f}".rstrip("0").rstrip(".")


def _image_urls(vehicle: Vehicle) -> List[str]:
    urls = [image.url for image in vehicle.images[:MAX_EXPORT_IMAGES]]
    return urls + [""] * (MAX_EXPORT_IMAGES - len(urls))


def _common_tail(vehicle: Vehicle) -> list:
    return [
        vehicle.title or f"{vehicle.manufacturer} {vehicle.model}",
        (vehicle.description or "").replace("\n", " "),
        ", ".join(vehicle.features or []),
    ]


def mobile_de_row(vehicle: Vehicle) -> list:
    """One vehicle in mobile.de column layout."""
    registration = vehicle.first_registration
    return [
        vehicle.vehicle_number,
        vehicle.manufacturer,
        vehicle.model,
        _value(vehicle.variant),
        _label(VEHICLE_TYPE_LABELS, vehicle.vehicle_type, MOBILE, vehicle.vehicle_type),
        _label(CONDITION_LABELS, vehicle.condition, MOBILE, vehicle.condition),
        _price(vehicle.selling_price),
        "MwSt. ausweisbar" if vehicle.vat_type == "vat" else "Differenzbesteuert",
        registration.strftime("%m.%Y") if registration else "",
        vehicle.mileage,
        _label(FUEL_TYPE_LABELS, vehicle.fuel_type, MOBILE),
        _label(TRANSMISSION_LABELS, vehicle.transmission, MOBILE),
        _value(vehicle.power_kw),
        _value(vehicle.power_ps),
        _value(vehicle.displacement),
        _label(DRIVE_TYPE_LABELS, vehicle.drive_type, MOBILE),
        _value(vehicle.exterior_color),
        _value(vehicle.interior_color),
        _value(vehicle.doors),
        _value(vehicle.seats),
        vehicle.previous_owners or 0,
        _value(vehicle.vin),
        _value(vehicle.hsn),
        _value(vehicle.tsn),
    ] + _common_tail(vehicle) + _image_urls(vehicle)


def autoscout_row(vehicle: Vehicle) -> list:
    """One vehicle in AutoScout24 column layout."""
    registration = vehicle.first_registration
    return [
        vehicle.vehicle_number,
        vehicle.manufacturer,
        vehicle.model,
        _value(vehicle.variant),
        _label(VEHICLE_TYPE_LABELS, vehicle.vehicle_type, AUTOSCOUT, vehicle.vehicle_type),
        _label(CONDITION_LABELS, vehicle.condition, AUTOSCOUT, vehicle.condition),
        _price(vehicle.selling_price),
        "1" if vehicle.vat_type == "vat" else "0",
        str(registration.year) if registration else "",
        f"{registration.month:02d}" if registration else "",
        vehicle.mileage,
        _label(FUEL_TYPE_LABELS, vehicle.fuel_type, AUTOSCOUT),
        _label(TRANSMISSION_LABELS, vehicle.transmission, AUTOSCOUT),
        _value(vehicle.power_kw),
        _value(vehicle.power_ps),
        _value(vehicle.displacement),
        _label(DRIVE_TYPE_LABELS, vehicle.drive_type, AUTOSCOUT),
        _value(vehicle.exterior_color),
        _value(vehicle.interior_color),
        _value(vehicle.doors),
        _value(vehicle.seats),
        vehicle.previous_owners or 0,
        _value(vehicle.vin),
    ] + _common_tail(vehicle) + _image_urls(vehicle)


def build_export_csv(vehicles: List[Vehicle], export_format: str) -> str:
    """
    Semicolon separated CSV for a marketplace import.

    Starts with a UTF-8 byte order mark so spreadsheet tools detect the
    encoding.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=";", lineterminator="\n")

    if export_format == "autoscout":
        writer.writerow(AUTOSCOUT_HEADERS)
        writer.writerows(autoscout_row(v) for v in vehicles)
    else:
        writer.writerow(MOBILE_DE_HEADERS)
        writer.writerows(mobile_de_row(v) for v in vehicles)

    return "\ufeff" + buffer.getvalue()


@router.get("")
def dashboard(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Dashboard figures for every area of the back-office.

    Args:
        current_user: Authenticated user
        db: Database session

    Returns:
        dict: Statistics per area and the logged-in user's name
    """
    logger.info(f"Dashboard requested by user: {current_user.email}")
    return {
        "user": {"name": current_user.name, "role": current_user.role},
        "vehicles": compute_vehicle_stats(db),
        "customers": compute_customer_stats(db),
        "contracts": compute_contract_stats(db),
        "invoices": compute_invoice_stats(db),
        "inquiries": compute_inquiry_stats(db),
        "blog": compute_blog_stats(db),
    }


@router.get("/export/csv")
def export_csv(
    export_format: str = Query("mobile", alias="format", pattern="^(mobile|autoscout)$"),
    ids: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Export vehicles as a mobile.de or AutoScout24 CSV file.

    Args:
        export_format: mobile (default) or autoscout
        ids: Comma separated vehicle ids; all active vehicles when omitted
        current_user: Authenticated user
        db: Database session

    Returns:
        StreamingResponse: CSV file download

    Raises:
        HTTPException: If ids are malformed or no vehicle matches
    """
    logger.info(f"CSV export ({export_format}) initiated by user: {current_user.email}")

    query = db.query(Vehicle).options(selectinload(Vehicle.images))
    if ids:
        try:
            vehicle_ids = [int(part) for part in ids.split(",") if part.strip()]
        except ValueError:
            logger.warning(f"Invalid vehicle ids for export: {ids}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Vehicle ids must be integers"
            )
        query = query.filter(Vehicle.id.in_(vehicle_ids))
    else:
        query = query.filter(Vehicle.status == VehicleStatus.ACTIVE.value)

    vehicles = query.order_by(Vehicle.vehicle_number.asc()).all()
    if not vehicles:
        logger.warning("No vehicles to export")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No vehicles found to export"
        )

    content = build_export_csv(vehicles, export_format)
    marketplace = "autoscout24" if export_format == "autoscout" else "mobile-de"
    filename = f"st-motors-{marketplace}-{date.today().isoformat()}.csv"

    logger.info(f"Exported {len(vehicles)} vehicles: {filename}")
    return StreamingResponse(
        io.BytesIO(content.encode("utf-8")),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"'
        }
    )
