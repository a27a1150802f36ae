import hmac
from typing import Optional

from fastapi import HTTPException, Request

from .config import Settings

SESSION_USER_KEY = "u"


def _required(value: str, name: str) -> str:
    if not value:
        raise HTTPException(status_code=500, detail=f"{name} is not configured")
    return value


def check_credentials(username: str, password: str, settings: Settings) -> bool:
    expected_user = _required(settings.app_username, "APP_USERNAME")
    expected_pass = _required(settings.app_password, "APP_PASSWORD")
    user_ok = hmac.compare_digest(username.encode(), expected_user.encode())
    pass_ok = hmac.compare_digest(password.encode(), expected_pass.encode())
    return user_ok and pass_ok


def current_username(request: Request) -> Optional[str]:
    username = request.session.get(SESSION_USER_KEY)
    return username if isinstance(username, str) and username else None


async def require_username(request: Request) -> str:
    username = current_username(request)
    if not username:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return username
