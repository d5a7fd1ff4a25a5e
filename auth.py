import logging
from typing import Optional

from fastapi import Request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from config import get_settings
from errors import Unauthenticated

logger = logging.getLogger(__name__)

SESSION_COOKIE = "expenses_session"


def _serializer() -> URLSafeTimedSerializer:
    settings = get_settings()
    return URLSafeTimedSerializer(settings.session_secret, salt="session-token")


def issue_session_token(user_id: str) -> str:
    if not user_id:
        raise ValueError("user_id is required")
    return _serializer().dumps({"u": user_id})


def resolve_user_id(token: Optional[str]) -> str:
    """Return the user id carried by ``token`` or raise ``Unauthenticated``."""
    if not token:
        raise Unauthenticated()
    max_age = get_settings().session_max_age_hours * 3600
    try:
        data = _serializer().loads(token, max_age=max_age)
    except SignatureExpired as exc:
        logger.info("session_rejected: reason=expired")
        raise Unauthenticated() from exc
    except BadSignature as exc:
        logger.info("session_rejected: reason=bad_signature")
        raise Unauthenticated() from exc

    user_id = data.get("u") if isinstance(data, dict) else None
    if not isinstance(user_id, str) or not user_id:
        raise Unauthenticated()
    return user_id


def token_from_request(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(SESSION_COOKIE)


def current_user_id(request: Request) -> str:
    return resolve_user_id(token_from_request(request))
