from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from meridian.core.responses import error_response
from meridian.integrations.github.github import GitHubAuthError, GitHubError
from meridian.utils.encryption import CredentialError
from meridian.utils.logger import logger


async def unprocessable_entity_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"]) if error["loc"] else "general"
        errors.append({"field": field, "message": error["msg"]})

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "The received data is invalid. Please check the fields below for details.",
            "errors": errors,
        },
    )


async def github_auth_exception_handler(
    request: Request, exc: GitHubAuthError
) -> JSONResponse:
    return error_response(
        error="github_auth",
        message=str(exc),
        status_code=status.HTTP_401_UNAUTHORIZED,
    )


async def credential_exception_handler(
    request: Request, exc: CredentialError
) -> JSONResponse:
    logger.error(f"Credential error on {request.url.path}: {exc}")
    return error_response(
        error="credential",
        message="Stored GitHub token cannot be used. Please reconnect your account.",
        status_code=status.HTTP_401_UNAUTHORIZED,
    )


async def github_exception_handler(request: Request, exc: GitHubError) -> JSONResponse:
    logger.error(f"GitHub error on {request.url.path}: {exc}")
    return error_response(
        error="github",
        message=str(exc),
        status_code=status.HTTP_502_BAD_GATEWAY,
    )
