import logging
from typing import Optional

from fastapi import Request

from app.core.errors import Unauthenticated
from app.core.security import extract_token_from_header, verify_token

logger = logging.getLogger(__name__)


async def get_current_user_id(request: Request) -> str:
    """Зависимость: id пользователя из проверенного bearer-токена"""
    token: Optional[str] = extract_token_from_header(request.headers.get("Authorization", ""))
    if not token:
        raise Unauthenticated("Missing bearer token")

    payload = verify_token(token, getattr(request.app.state, "settings", None))
    if not payload:
        logger.warning("Rejected invalid or expired token")
        raise Unauthenticated("Could not validate credentials")

    user_id = payload.get("sub")
    if not user_id:
        raise Unauthenticated("Token has no subject")

    return str(user_id)
