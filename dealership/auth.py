"""Authentication utilities for session tokens and password hashing."""

import os
import logging
from typing import Optional
from datetime import datetime, timedelta
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from dotenv import load_dotenv

from dealership.database import get_db
from dealership.models import User, UserRole

# Load environment variables
load_dotenv()

# Configure logging
logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# JWT configuration
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
if not JWT_SECRET_KEY:
    raise ValueError("JWT_SECRET_KEY must be set in .env file")

ALGORITHM = "HS256"
SESSION_MAX_AGE_DAYS = int(os.getenv("SESSION_MAX_AGE_DAYS", "30"))
SESSION_COOKIE_NAME = "session_token"

# Bearer header is optional, browsers send the session cookie instead
security = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Bcrypt has a maximum password length of 72 bytes. Passwords longer than
    this are truncated to prevent errors.

    Args:
        password: Plain text password

    Returns:
        str: Hashed password
    """
    logger.debug("Hashing password")
    password_bytes = password.encode('utf-8')[:72]
    password_truncated = password_bytes.decode('utf-8', errors='ignore')
    return pwd_context.hash(password_truncated)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash.

    Passwords are truncated to 72 bytes to match the hashing behavior.

    Args:
        plain_password: Plain text password
        hashed_password: Hashed password to verify against

    Returns:
        bool: True if password matches, False otherwise
    """
    logger.debug("Verifying password")
    password_bytes = plain_password.encode('utf-8')[:72]
    password_truncated = password_bytes.decode('utf-8', errors='ignore')
    return pwd_context.verify(password_truncated, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed session token.

    Args:
        data: Dictionary containing claims to encode in the token
        expires_delta: Token lifetime, defaults to SESSION_MAX_AGE_DAYS

    Returns:
        str: Encoded JWT token
    """
    to_encode = data.copy()
    issued_at = datetime.utcnow()
    expire = issued_at + (expires_delta or timedelta(days=SESSION_MAX_AGE_DAYS))
    to_encode.update({"iat": issued_at, "exp": expire})

    logger.info(f"Creating session token for user: {data.get('sub')}")
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """
    Decode and verify a session token.

    Signature and expiry are checked by python-jose. A token without a
    subject claim is treated as invalid.

    Args:
        token: JWT token string

    Returns:
        Optional[dict]: Decoded token payload or None if invalid
    """
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"Token decode error: {e}")
        return None

    if not payload.get("sub"):
        logger.warning("Token missing subject claim")
        return None

    logger.debug("Token decoded successfully")
    return payload


def extract_token(request: Request) -> Optional[str]:
    """Return the session token from the cookie or the Authorization header."""
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if token:
        return token

    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[len("Bearer "):].strip() or None
    return None


def token_payload_for(user: User) -> dict:
    """Claims carried by a user's session token."""
    return {"sub": str(user.id), "email": user.email, "role": user.role}


def authenticate_user(db: Session, email: Optional[str], password: Optional[str]) -> Optional[User]:
    """
    Validate a login attempt.

    Missing credentials fail before any lookup. Unknown email and wrong
    password both return None so callers cannot tell them apart. On success
    the user's last login timestamp is updated.

    Args:
        db: Database session
        email: Submitted email (exact, case-sensitive match)
        password: Submitted plain text password

    Returns:
        Optional[User]: The authenticated user or None
    """
    if not email or not password:
        logger.warning("Login failed: missing credentials")
        return None

    user = db.query(User).filter(User.email == email).first()
    if not user:
        logger.warning(f"Login failed: User not found - {email}")
        return None

    if not verify_password(password, user.password_hash):
        logger.warning(f"Login failed: Invalid password - {email}")
        return None

    user.last_login = datetime.utcnow()
    db.commit()
    db.refresh(user)

    logger.info(f"User logged in successfully: {email}")
    return user


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Dependency to get the current authenticated user from the session token.

    Args:
        request: Incoming request, used for the session cookie
        credentials: Bearer scheme, declared for the OpenAPI docs; the token
            itself is read by extract_token
        db: Database session

    Returns:
        User: The authenticated user

    Raises:
        HTTPException: If authentication fails
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token = extract_token(request)
    if not token:
        logger.warning("No session token received")
        raise credentials_exception

    payload = decode_token(token)
    if payload is None:
        logger.warning("Invalid token received")
        raise credentials_exception

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        logger.warning(f"Token subject is not a user id: {payload.get('sub')}")
        raise credentials_exception

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        logger.warning(f"User not found: {user_id}")
        raise credentials_exception

    logger.debug(f"User authenticated: {user.email}")
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Dependency that only admits administrators."""
    if current_user.role != UserRole.ADMIN.value:
        logger.warning(f"Admin permission denied for user: {current_user.email}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator permission required"
        )
    return current_user
