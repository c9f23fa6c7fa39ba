from __future__ import annotations

import secrets
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wartek.core.db import get_db
from wartek.core.errors import Unauthorized, ValidationError
from wartek.core.security import sign_token, verify_password
from wartek.models import User
from wartek.services.google_auth import verify_google_credential

router = APIRouter(prefix="/users", tags=["users"])

class RegisterPayload(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None

class LoginPayload(BaseModel):
    emailOrUsername: Optional[str] = None
    password: Optional[str] = None

class GoogleAuthPayload(BaseModel):
    credential: Optional[str] = None

async def _ensure_unique(session: AsyncSession, username: str | None, email: str | None) -> None:
    if email and (await session.execute(select(User.id).where(User.email == email.strip()))).first():
        raise ValidationError("Email already exists")
    if username and (await session.execute(select(User.id).where(User.username == username.strip()))).first():
        raise ValidationError("Username already exists")

@router.post("/register", status_code=201)
async def register(payload: RegisterPayload, session: AsyncSession = Depends(get_db)):
    # Validators on User raise in field order: username, email, password
    user = User(username=payload.username, email=payload.email, password=payload.password)
    await _ensure_unique(session, payload.username, payload.email)

    session.add(user)
    try:
        await session.commit()
    except IntegrityError:
        # a concurrent register won the race, report whichever field it took
        await session.rollback()
        await _ensure_unique(session, payload.username, payload.email)
        raise ValidationError("Email already exists")
    await session.refresh(user)
    return {"message": "User registered successfully", "id": user.id, "email": user.email}

@router.post("/login")
async def login(payload: LoginPayload, session: AsyncSession = Depends(get_db)):
    if not payload.emailOrUsername:
        raise ValidationError("emailOrUsername is required")
    if not payload.password:
        raise ValidationError("password is required")

    stmt = select(User).where(or_(User.email == payload.emailOrUsername, User.username == payload.emailOrUsername))
    user = (await session.execute(stmt)).scalars().first()
    if not user or not verify_password(payload.password, user.password):
        raise Unauthorized("Invalid email/username or password")

    return {"access_token": sign_token(user.id), "user": user.to_public()}

async def _free_username(session: AsyncSession, base: str, google_id: str) -> str:
    candidate = base
    attempt = 0
    while (await session.execute(select(User.id).where(User.username == candidate))).first():
        attempt += 1
        suffix = google_id[-6:] if attempt == 1 else f"{google_id[-6:]}{attempt}"
        candidate = f"{base}_{suffix}"
    return candidate

@router.post("/google-auth")
async def google_auth(payload: GoogleAuthPayload, session: AsyncSession = Depends(get_db)):
    if not payload.credential:
        raise ValidationError("credential is required")

    identity = await verify_google_credential(payload.credential)

    stmt = select(User).where(or_(User.google_id == identity.google_id, User.email == identity.email))
    user = (await session.execute(stmt)).scalars().first()

    if not user:
        username = await _free_username(session, identity.name or identity.email.split("@")[0], identity.google_id)
        user = User(
            username=username,
            email=identity.email,
            # Unusable for password login, hashed like any other password
            password=secrets.token_urlsafe(32),
            google_id=identity.google_id,
            picture=identity.picture,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
    elif not user.google_id:
        user.google_id = identity.google_id
        user.picture = user.picture or identity.picture
        await session.commit()

    return {"access_token": sign_token(user.id), "user": user.to_public()}
