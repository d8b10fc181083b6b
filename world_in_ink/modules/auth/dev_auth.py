from datetime import datetime, timedelta, timezone

from fastapi import Header
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.orm import Session

from world_in_ink.config import settings
from world_in_ink.db import session as db_session
from world_in_ink.db.models import User
from world_in_ink.errors import api_error

JWT_LEEWAY_SECONDS = 60


def create_access_token(user_id: str, email: str | None = None) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email or "",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=settings.jwt_exp_minutes)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


def user_payload(user: User) -> dict:
    return {"id": user.id, "email": user.email, "name": user.name, "image": user.image}


def upsert_dev_user(db: Session, *, email: str, name: str | None = None) -> User:
    user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if user is None:
        user = User(email=email, name=name or email.split("@", 1)[0])
        db.add(user)
        db.flush()
    elif name:
        user.name = name
    return user


def _dev_fallback_user(db: Session, x_user_id: str) -> User:
    user = db.get(User, x_user_id)
    if user:
        return user
    user = User(id=x_user_id, email=f"{x_user_id}@dev.local", name="Dev User")
    db.add(user)
    db.flush()
    return user


def _user_id_from_bearer(token: str) -> str | None:
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=["HS256"],
            options={"verify_aud": False, "verify_exp": False, "verify_iat": False},
        )
    except JWTError:
        return None
    now_ts = int(datetime.now(timezone.utc).timestamp())
    exp = int(payload.get("exp", 0))
    iat = int(payload.get("iat", 0))
    if exp and now_ts > exp + JWT_LEEWAY_SECONDS:
        return None
    if iat and now_ts + JWT_LEEWAY_SECONDS < iat:
        return None
    subject = str(payload.get("sub") or "").strip()
    return subject or None


def resolve_user(authorization: str | None, x_user_id: str | None) -> dict | None:
    """Identity from a bearer token, or from X-User-Id in the dev env; None when absent or invalid."""
    if authorization and authorization.lower().startswith("bearer "):
        user_id = _user_id_from_bearer(authorization.split(" ", 1)[1].strip())
        if user_id is None:
            return None
        with db_session.SessionLocal() as db:
            user = db.get(User, user_id)
            return user_payload(user) if user else None

    cleaned = str(x_user_id or "").strip()
    if settings.env == "dev" and cleaned:
        with db_session.SessionLocal() as db:
            user = _dev_fallback_user(db, cleaned)
            db.commit()
            return user_payload(user)

    return None


def get_current_user(
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
) -> dict:
    user = resolve_user(authorization, x_user_id)
    if user is None:
        raise api_error(401, "Unauthorized")
    return user


def get_optional_user(
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
) -> dict | None:
    return resolve_user(authorization, x_user_id)
