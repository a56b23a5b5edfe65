from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlmodel import Session

from meridian.api.dependencies import get_cipher
from meridian.auth import issue_token
from meridian.config.db import get_session
from meridian.core.responses import success_response
from meridian.services.owner_service import connect_owner
from meridian.utils.encryption import CredentialCipher

router = APIRouter()


class SetupRequest(BaseModel):
    token: str = Field(..., min_length=1, description="GitHub personal access token")


@router.post("/setup")
def setup(
    body: SetupRequest,
    session: Session = Depends(get_session),
    cipher: CredentialCipher = Depends(get_cipher),
):
    """Validate a GitHub token, store it encrypted and open a session for its owner."""
    owner = connect_owner(session, body.token.strip(), cipher)
    return success_response(
        {
            "token": issue_token(owner),
            "owner": {
                "id": owner.id,
                "github_login": owner.github_login,
                "name": owner.name,
                "avatar_url": owner.avatar_url,
            },
        },
        message="GitHub account connected",
    )
