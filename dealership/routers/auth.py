"""Authentication router for back-office login and logout."""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from dealership.database import get_db
from dealership.models import User
from dealership.schemas import LoginScreen, PasswordChange, Token, UserLogin, UserOut
from dealership.auth import (
    SESSION_COOKIE_NAME, SESSION_MAX_AGE_DAYS, authenticate_user, create_access_token,
    decode_token, extract_token, get_current_user, hash_password, token_payload_for,
    verify_password,
)
from dealership.utils import commit_or_raise

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Authentication"])


@router.get("/login", response_model=LoginScreen)
def login_screen(request: Request, callbackUrl: Optional[str] = None):
    """
    Login page data. Always served, whatever the session state.

    Args:
        request: Incoming request, used to detect an existing session
        callbackUrl: Admin path to return to after login

    Returns:
        LoginScreen: Whether a valid session is already present
    """
    token = extract_token(request)
    authenticated = bool(token) and decode_token(token) is not None
    return LoginScreen(authenticated=authenticated, callback_url=callbackUrl)


@router.post("/login", response_model=Token)
def login(user_data: UserLogin, response: Response, db: Session = Depends(get_db)):
    """
    Authenticate user and issue a session token.

    The token is returned in the body and set as an HttpOnly cookie.

    Args:
        user_data: User login data (email, password)
        response: Response used to set the session cookie
        db: Database session

    Returns:
        Token: Session token and user information

    Raises:
        HTTPException: If credentials are missing or invalid
    """
    logger.info(f"Login attempt for email: {user_data.email}")

    user = authenticate_user(db, user_data.email, user_data.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    access_token = create_access_token(data=token_payload_for(user))

    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=access_token,
        max_age=SESSION_MAX_AGE_DAYS * 24 * 60 * 60,
        httponly=True,
        samesite="lax",
    )

    return {"access_token": access_token, "token_type": "bearer", "user": user}


@router.post("/logout")
def logout(response: Response):
    """Drop the session cookie."""
    response.delete_cookie(SESSION_COOKIE_NAME)
    logger.info("User logged out")
    return {"message": "Logged out"}


@router.get("/me", response_model=UserOut)
def read_me(current_user: User = Depends(get_current_user)):
    """Return the logged-in user."""
    return current_user


@router.post("/me/password")
def change_password(
    request: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Change the logged-in user's password.

    Args:
        request: Current and new password
        current_user: Authenticated user
        db: Database session

    Returns:
        dict: Success message

    Raises:
        HTTPException: If the current password does not match
    """
    logger.info(f"Password change requested by: {current_user.email}")

    if not verify_password(request.current_password, current_user.password_hash):
        logger.warning(f"Password change failed: wrong current password - {current_user.email}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect"
        )

    current_user.password_hash = hash_password(request.new_password)
    commit_or_raise(db, "Password change")

    logger.info(f"Password changed successfully for: {current_user.email}")
    return {"message": "Password changed successfully"}
