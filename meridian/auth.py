"""JWT sessions identifying the connected owner."""

from datetime import timedelta

import jwt
from fastapi import Depends, Header, HTTPException
from sqlmodel import Session

from meridian.config import settings
from meridian.config.db import get_session
from meridian.models.owner import Owner
from meridian.utils.timeutils import utcnow

JWT_ALGORITHM = "HS256"


def _get_jwt_secret() -> str:
    secret = settings.JWT_SECRET
    if not secret:
        raise RuntimeError("JWT_SECRET environment variable is not set")
    return secret


def issue_token(owner: Owner) -> str:
    now = utcnow()
    payload = {
        "sub": str(owner.id),
        "login": owner.github_login,
        "iat": now,
        "exp": now + timedelta(hours=settings.JWT_EXPIRY_HOURS),
    }
    return jwt.encode(payload, _get_jwt_secret(), algorithm=JWT_ALGORITHM)


async def get_current_owner(
    authorization: str = Header(...),
    session: Session = Depends(get_session),
) -> Owner:
    try:
        if not authorization.startswith("Bearer "):
            raise HTTPException(status_code=401, detail="Invalid authorization header")
        token = authorization[7:]
        payload = jwt.decode(
            token,
            _get_jwt_secret(),
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp", "sub"], "verify_exp": True},
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

    owner = session.get(Owner, int(payload["sub"]))
    if owner is None:
        raise HTTPException(status_code=401, detail="Unknown owner")
    return owner
