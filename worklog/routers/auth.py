"""
Authentication: e-mail/password accounts and opaque bearer tokens.
"""
import logging
import secrets
import uuid
from datetime import datetime, timezone

import bcrypt
from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel
from sqlmodel import Session, select

from worklog.db import get_session
from worklog.models import AuthToken, User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

MIN_PASSWORD_LENGTH = 6
# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72


class Credentials(BaseModel):
    email: str
    password: str


class IdentityOut(BaseModel):
    id: str
    email: str


class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: IdentityOut


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, encoded: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), encoded.encode("utf-8"))
    except ValueError:
        return False


def _bearer_token(authorization: str | None) -> str:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Missing bearer token")
    return token.strip()


def _issue_token(db: Session, user: User) -> AuthResponse:
    token = AuthToken(
        token=secrets.token_urlsafe(32),
        user_id=user.id,
        created_at=datetime.now(timezone.utc),
    )
    db.add(token)
    db.commit()
    return AuthResponse(
        access_token=token.token, user=IdentityOut(id=user.id, email=user.email)
    )


def require_user(
    db: Session = Depends(get_session),
    authorization: str | None = Header(default=None),
) -> User:
    """Resolve the bearer token to its user, or 401."""
    token = _bearer_token(authorization)
    row = db.get(AuthToken, token)
    user = db.get(User, row.user_id) if row else None
    if not user:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return user


@router.post("/signup", response_model=AuthResponse)
def sign_up(creds: Credentials, db: Session = Depends(get_session)):
    """Create an account and sign it in."""
    email = creds.email.strip().lower()
    if "@" not in email:
        raise HTTPException(status_code=400, detail="Unable to validate email address: invalid format")
    if len(creds.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password should be at least {MIN_PASSWORD_LENGTH} characters.",
        )
    if len(creds.password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise HTTPException(
            status_code=400,
            detail=f"Password should be at most {MAX_PASSWORD_BYTES} bytes.",
        )
    existing = db.exec(select(User).where(User.email == email)).one_or_none()
    if existing:
        raise HTTPException(status_code=400, detail="User already registered")

    user = User(
        id=str(uuid.uuid4()),
        email=email,
        password_hash=hash_password(creds.password),
        created_at=datetime.now(timezone.utc),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return _issue_token(db, user)


@router.post("/signin", response_model=AuthResponse)
def sign_in(creds: Credentials, db: Session = Depends(get_session)):
    email = creds.email.strip().lower()
    user = db.exec(select(User).where(User.email == email)).one_or_none()
    if not user or not verify_password(creds.password, user.password_hash):
        logger.warning("Failed sign-in for %s", email)
        raise HTTPException(status_code=400, detail="Invalid login credentials")
    return _issue_token(db, user)


@router.post("/signout", status_code=204)
def sign_out(
    db: Session = Depends(get_session),
    authorization: str | None = Header(default=None),
):
    """Revoke the presented token. Unknown tokens are ignored."""
    token = _bearer_token(authorization)
    row = db.get(AuthToken, token)
    if row:
        db.delete(row)
        db.commit()


@router.get("/user", response_model=IdentityOut)
def current_user(user: User = Depends(require_user)):
    return IdentityOut(id=user.id, email=user.email)
