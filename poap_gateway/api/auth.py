"""
Auth API Endpoints

- POST   /api/auth/register            Create organizer account, returns JWT
- POST   /api/auth/login               Exchange email/password for JWT
- GET    /api/auth/profile             Current organizer
- POST   /api/auth/api-keys            Create API key (shown once)
- GET    /api/auth/api-keys            List API keys (masked)
- DELETE /api/auth/api-keys/{keyId}    Deactivate API key
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from poap_gateway.api.common import ok
from poap_gateway.db.database import get_db
from poap_gateway.middleware.auth import AuthContext, authenticate
from poap_gateway.models import ApiKey, Organizer
from poap_gateway.utils.security import (
    MAX_PASSWORD_BYTES,
    create_access_token,
    generate_api_key,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    name: str = Field(..., min_length=1, max_length=200)
    company: Optional[str] = Field(default=None, max_length=200)

    @field_validator("password")
    @classmethod
    def check_password_bytes(cls, v):
        if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"must be at most {MAX_PASSWORD_BYTES} bytes")
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ApiKeyRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


@router.post("/register", status_code=201)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    email = payload.email.lower()
    if db.query(Organizer).filter(Organizer.email == email).first():
        raise HTTPException(status_code=409, detail="Email already registered")

    organizer = Organizer(
        email=email,
        name=payload.name.strip(),
        company=payload.company,
        password_hash=hash_password(payload.password),
    )
    db.add(organizer)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Email already registered")

    logger.info(f"👤 Organizer registered: {organizer.id}")
    return ok({
        "token": create_access_token(organizer.id, organizer.email),
        "organizer": organizer.to_dict(),
    })


@router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    organizer = db.query(Organizer).filter(Organizer.email == payload.email.lower()).first()
    if organizer is None or not verify_password(payload.password, organizer.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not organizer.is_active:
        raise HTTPException(status_code=403, detail="Account is inactive")

    return ok({
        "token": create_access_token(organizer.id, organizer.email),
        "organizer": organizer.to_dict(),
    })


@router.get("/profile")
def profile(auth: AuthContext = Depends(authenticate), db: Session = Depends(get_db)):
    organizer = db.get(Organizer, auth.organizer_id)
    data = organizer.to_dict()
    data["campaignCount"] = len(organizer.campaigns)
    data["apiKeyCount"] = sum(1 for key in organizer.api_keys if key.is_active)
    return ok(data)


@router.post("/api-keys", status_code=201)
def create_api_key(
    payload: ApiKeyRequest,
    auth: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    record = ApiKey(organizer_id=auth.organizer_id, name=payload.name.strip(), key=generate_api_key())
    db.add(record)
    db.commit()

    logger.info(f"🔑 API key created: {record.id} for organizer {auth.organizer_id}")
    return ok(record.to_dict(reveal=True), message="Store this key now; it will not be shown again")


@router.get("/api-keys")
def list_api_keys(auth: AuthContext = Depends(authenticate), db: Session = Depends(get_db)):
    keys = (
        db.query(ApiKey)
        .filter(ApiKey.organizer_id == auth.organizer_id)
        .order_by(ApiKey.created_at.desc())
        .all()
    )
    return ok([key.to_dict() for key in keys])


@router.delete("/api-keys/{key_id}")
def deactivate_api_key(key_id: str, auth: AuthContext = Depends(authenticate), db: Session = Depends(get_db)):
    record = (
        db.query(ApiKey)
        .filter(ApiKey.id == key_id, ApiKey.organizer_id == auth.organizer_id)
        .first()
    )
    if record is None:
        raise HTTPException(status_code=404, detail="API key not found")

    record.is_active = False
    db.commit()
    return ok({"id": record.id, "isActive": False})
