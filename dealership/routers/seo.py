"""Robots and sitemap endpoints for search engines."""

import os
import logging
from datetime import datetime
from typing import List
from xml.etree import ElementTree
from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from dotenv import load_dotenv

from dealership.database import get_db
from dealership.models import BlogPost, BlogStatus, Vehicle, VehicleStatus

# Load environment variables
load_dotenv()

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(tags=["SEO"])

SITE_URL = os.getenv("SITE_URL", "https://stmotors.de").rstrip("/")

DISALLOWED_PATHS = ["/admin/", "/api/", "/_next/"]

# (path, change frequency, priority)
STATIC_PAGES = [
    ("", "daily", 1.0),
    ("/fahrzeuge", "daily", 0.9),
    ("/ueber-uns", "monthly", 0.7),
    ("/verkaufen", "monthly", 0.8),
    ("/kontakt", "monthly", 0.7),
    ("/blog", "weekly", 0.6),
    ("/impressum", "yearly", 0.3),
    ("/datenschutz", "yearly", 0.3),
]


def build_sitemap_entries(db: Session, base_url: str = SITE_URL) -> List[dict]:
    """
    Sitemap entries: the static pages, then one per active vehicle and one
    per published blog post.

    A section whose records cannot be read is left out instead of failing
    the whole sitemap.
    """
    now = datetime.utcnow()
    entries = [
        {
            "url": f"{base_url}{path}",
            "last_modified": now,
            "change_frequency": frequency,
            "priority": priority,
        }
        for path, frequency, priority in STATIC_PAGES
    ]

    try:
        vehicles = db.query(Vehicle.slug, Vehicle.updated_at).filter(
            Vehicle.status == VehicleStatus.ACTIVE.value
        ).all()
        entries.extend(
            {
                "url": f"{base_url}/fahrzeuge/{slug}",
                "last_modified": updated_at,
                "change_frequency": "daily",
                "priority": 0.8,
            }
            for slug, updated_at in vehicles
        )
    except SQLAlchemyError as e:
        logger.error(f"Error fetching vehicles for sitemap: {e}")
        db.rollback()

    try:
        posts = db.query(BlogPost.slug, BlogPost.updated_at).filter(
            BlogPost.status == BlogStatus.PUBLISHED.value
        ).all()
        entries.extend(
            {
                "url": f"{base_url}/blog/{slug}",
                "last_modified": updated_at,
                "change_frequency": "weekly",
                "priority": 0.6,
            }
            for slug, updated_at in posts
        )
    except SQLAlchemyError as e:
        logger.error(f"Error fetching blog posts for sitemap: {e}")
        db.rollback()

    return entries


def render_sitemap(entries: List[dict]) -> bytes:
    """Serialize sitemap entries as sitemaps.org XML."""
    urlset = ElementTree.Element("urlset", xmlns="http://www.sitemaps.org/schemas/sitemap/0.9")
    for entry in entries:
        url = ElementTree.SubElement(urlset, "url")
        ElementTree.SubElement(url, "loc").text = entry["url"]
        ElementTree.SubElement(url, "lastmod").text = entry["last_modified"].isoformat()
        ElementTree.SubElement(url, "changefreq").text = entry["change_frequency"]
        ElementTree.SubElement(url, "priority").text = str(entry["priority"])
    return ElementTree.tostring(urlset, encoding="utf-8", xml_declaration=True)


@router.get("/sitemap.xml")
def sitemap(db: Session = Depends(get_db)):
    """Sitemap with static pages, active vehicles and published posts."""
    entries = build_sitemap_entries(db)
    logger.info(f"Generated sitemap with {len(entries)} entries")
    return Response(content=render_sitemap(entries), media_type="application/xml")


@router.get("/robots.txt", response_class=PlainTextResponse)
def robots():
    """Robots directives: everything public except internal paths."""
    lines = ["User-agent: *", "Allow: /"]
    lines.extend(f"Disallow: {path}" for path in DISALLOWED_PATHS)
    lines.append("")
    lines.append(f"Sitemap: {SITE_URL}/sitemap.xml")
    return "\n".join(lines) + "\n"
