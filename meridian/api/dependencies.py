from typing import Optional

from fastapi import HTTPException, Request, status

from meridian.llms.summarizer import Summarizer
from meridian.utils.encryption import CredentialCipher


def get_cipher(request: Request) -> CredentialCipher:
    cipher: Optional[CredentialCipher] = getattr(request.app.state, "cipher", None)
    if cipher is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="ENCRYPTION_KEY not configured on server.",
        )
    return cipher


def get_summarizer(request: Request) -> Optional[Summarizer]:
    return getattr(request.app.state, "summarizer", None)
