from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from world_in_ink.config import settings
from world_in_ink.db.session import get_db
from world_in_ink.errors import api_error
from world_in_ink.modules.auth.dev_auth import create_access_token, get_current_user, upsert_dev_user, user_payload

router = APIRouter(prefix="/api/auth", tags=["auth"])


class DevLoginRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: str = Field(min_length=3)
    name: str | None = None


@router.get("/me")
def me(user=Depends(get_current_user)):
    return {"user": user}


@router.post("/dev-login")
def dev_login(payload: DevLoginRequest, db: Session = Depends(get_db)):
    if settings.env != "dev":
        raise api_error(404, "Not found")

    with db.begin():
        user = upsert_dev_user(db, email=payload.email.strip().lower(), name=payload.name)
        body = user_payload(user)

    return {
        "access_token": create_access_token(user_id=body["id"], email=body["email"]),
        "token_type": "bearer",
        "user": body,
    }
