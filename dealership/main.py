"""Main FastAPI application for the dealership API."""

import os
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from dealership.database import init_db, seed_admin_user
from dealership.middleware import add_middleware
from dealership.routers import (
    admin, auth, blog, contracts, customers, inquiries, invoices, public, seo, vehicles,
)

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler('dealership_api.log')
    ]
)

logger = logging.getLogger(__name__)

# Get configuration from environment
NAME_APP = os.getenv("NAME_APP", "ST Motors")
CORS_ORIGINS = [
    origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()
]

# Create FastAPI application
app = FastAPI(
    title=NAME_APP,
    description="Public vehicle catalog and back-office API for a car dealership",
    version="1.0.0"
)

# Admin access gate, wrapped by CORS below
add_middleware(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(public.router)
app.include_router(seo.router)
app.include_router(auth.router)
app.include_router(vehicles.router)
app.include_router(customers.router)
app.include_router(contracts.router)
app.include_router(invoices.router)
app.include_router(inquiries.router)
app.include_router(blog.router)
app.include_router(admin.router)


@app.on_event("startup")
def startup_event():
    """Initialize database and seed admin user on application startup."""
    logger.info(f"Starting {NAME_APP}")
    init_db()
    logger.info("Database initialized successfully")
    seed_admin_user()
    logger.info("Admin user seed completed")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
