"""Best-effort injection of the authenticated user's login."""

from __future__ import annotations

import logging
from typing import Any

from .schemas import ToolInput

logger = logging.getLogger(__name__)

_USER_FIELDS = ("owner", "username")


async def fill_user(params: ToolInput, provider: Any) -> ToolInput:
    """Fill unset ``owner``/``username`` from ``provider.get_current_user()``.

    Explicit values are never overwritten. Any failure is logged and the
    params are returned unchanged; callers still check for a missing owner.
    """
    missing = [f for f in _USER_FIELDS if f in type(params).model_fields and not getattr(params, f)]
    if not missing:
        return params

    get_current_user = provider.capability("get_current_user")
    if get_current_user is None:
        return params

    try:
        user = await get_current_user()
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logger.warning("User auto-detection failed on provider %s: %s", provider.name, exc)
        return params

    login = (user.get("login") or user.get("username")) if isinstance(user, dict) else None
    if not login:
        logger.warning("User auto-detection returned no login on provider %s", provider.name)
        return params

    logger.debug("Auto-detected user %s for %s", login, ", ".join(missing))
    return params.model_copy(update={f: login for f in missing})
