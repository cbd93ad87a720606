import hmac
import logging
import os
from typing import Annotated

from fastapi import Header, HTTPException

logger = logging.getLogger(__name__)

# Tokens are read per request so they can be rotated without a restart.


def _configured(env_name: str) -> str:
    value = os.getenv(env_name, "")
    if not value:
        logger.error("%s is not set; refusing request", env_name)
        raise HTTPException(status_code=500, detail=f"{env_name} not configured on server.")
    return value


def _matches(supplied: str | None, expected: str) -> bool:
    return supplied is not None and hmac.compare_digest(supplied, expected)


def require_admin(
    x_admin_token: Annotated[str | None, Header(alias="x-admin-token")] = None,
) -> None:
    """Reviewer guard: pending queues, manual grades, stats and bank reloads."""
    if not _matches(x_admin_token, _configured("ADMIN_TOKEN")):
        raise HTTPException(status_code=401, detail="Unauthorized.")


def require_client(
    x_api_key: Annotated[str | None, Header(alias="x-api-key")] = None,
    x_admin_token: Annotated[str | None, Header(alias="x-admin-token")] = None,
) -> None:
    """
    Learner-facing guard. A valid reviewer token is always accepted; otherwise
    X-Api-Key must match GRADING_API_KEY.
    """
    admin_token = os.getenv("ADMIN_TOKEN", "")
    if admin_token and _matches(x_admin_token, admin_token):
        return
    if not _matches(x_api_key, _configured("GRADING_API_KEY")):
        raise HTTPException(status_code=401, detail="Unauthorized.")
