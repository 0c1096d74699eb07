"""Authentication endpoints."""

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from portal.application.use_cases.users import AuthenticationStatus, authenticate_user
from portal.config import get_settings
from portal.infrastructure.database import get_db
from portal.infrastructure.security import create_access_token
from portal.interfaces.api.dependencies import password_signature
from portal.interfaces.api.schemas import Token

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/token", response_model=Token)
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    """Authenticate by email and password and return a bearer token."""

    user, auth_status = authenticate_user(db, form_data.username, form_data.password)

    if auth_status is AuthenticationStatus.INVALID_CREDENTIALS:
        logger.info("Rejected login for %s", form_data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if auth_status is AuthenticationStatus.INACTIVE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(
        data={
            "sub": user.email,
            "role": user.role.alias,
            "pwd_sig": password_signature(user),
        },
        expires_delta=timedelta(minutes=get_settings().access_token_expire_minutes),
    )
    return {"access_token": access_token, "token_type": "bearer", "role": user.role.alias}
