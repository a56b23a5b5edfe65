from typing import Callable, Optional

from sqlmodel import Session, select

from meridian.integrations.github.github import GitHubClient
from meridian.models.owner import Owner
from meridian.services.persistence import upsert_owner
from meridian.utils.encryption import CredentialCipher
from meridian.utils.logger import logger


def connect_owner(
    session: Session,
    token: str,
    cipher: CredentialCipher,
    client_factory: Optional[Callable[[str], GitHubClient]] = None,
) -> Owner:
    """
    Validate a personal access token and store it for its GitHub identity.

    Reconnecting the same account replaces its token instead of creating a
    second owner.
    """
    github = (client_factory or GitHubClient)(token)
    try:
        user = github.get_authenticated_user()
    finally:
        github.close()

    owner = upsert_owner(session, user, cipher.encrypt(token))
    session.commit()
    session.refresh(owner)
    logger.info(f"Connected GitHub account {owner.github_login} as owner {owner.id}")
    return owner


def github_client_for(owner: Owner, cipher: CredentialCipher) -> GitHubClient:
    """Raises CredentialError if the stored token cannot be decrypted."""
    return GitHubClient(cipher.decrypt(owner.encrypted_token))


def list_owners(session: Session):
    return session.exec(select(Owner).order_by(Owner.id)).all()
