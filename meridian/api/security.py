import hmac

from fastapi import Header, HTTPException, status

from meridian.config import settings


async def verify_cron_secret(authorization: str = Header(None)):
    if not settings.CRON_SECRET:
        # The server itself is misconfigured, not the caller.
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="CRON_SECRET not configured on server.",
        )

    expected = f"Bearer {settings.CRON_SECRET}"
    if authorization and hmac.compare_digest(authorization, expected):
        return True
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or missing cron secret",
    )
