"""Database configuration and session management."""

import os
import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from dotenv import load_dotenv

from dealership.models import Base, User, UserRole

# Load environment variables
load_dotenv()

# Configure logging
logger = logging.getLogger(__name__)

# Get database configuration from environment
DATABASE_URL = os.getenv("DATABASE_URL")

if not DATABASE_URL:
    raise ValueError("DATABASE_URL must be set in .env file")

logger.info(f"Database backend: {DATABASE_URL.split(':', 1)[0]}")

# Create engine (one connection pool per process)
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
    pool_pre_ping=True,
)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db():
    """Initialize the database by creating all tables."""
    logger.info("Initializing database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")


def seed_admin_user():
    """
    Create the default administrator from environment variables on startup.

    Creates a user with:
    - Email: EMAIL_ADMIN
    - Password: PASSWORD_ADMIN
    - Name: NAME_ADMIN (defaults to "Administrator")
    - Role: admin

    Only creates if user doesn't already exist.
    """
    # Import here to avoid circular import
    from dealership.auth import hash_password

    logger.info("Checking admin user seed...")

    admin_email = os.getenv("EMAIL_ADMIN", "").strip()
    admin_password = os.getenv("PASSWORD_ADMIN", "")
    admin_name = os.getenv("NAME_ADMIN", "Administrator")

    if not admin_email:
        logger.warning("EMAIL_ADMIN not configured, skipping admin user seed")
        return

    if not admin_password:
        logger.warning("PASSWORD_ADMIN not configured, skipping admin user seed")
        return

    logger.info(f"Attempting to seed admin user: {admin_email}")

    db = SessionLocal()
    try:
        existing_user = db.query(User).filter(User.email == admin_email).first()

        if existing_user:
            logger.info(f"Admin user already exists: {admin_email}")
            return

        admin_user = User(
            email=admin_email,
            name=admin_name,
            password_hash=hash_password(admin_password),
            role=UserRole.ADMIN.value,
        )

        db.add(admin_user)
        db.commit()
        db.refresh(admin_user)

        logger.info(f"Admin user created successfully: {admin_email}")

    except Exception as e:
        logger.error(f"Failed to seed admin user: {e}")
        db.rollback()
    finally:
        db.close()


def get_db():
    """
    Dependency function to get database session.

    Yields:
        Session: SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
