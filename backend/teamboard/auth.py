"""
허용된 사용자 1명만 원격 저장소(sql)를 사용할 수 있다.

  ALLOWED_EMAIL   : 이메일 (대소문자 무시)
  ALLOWED_USER_ID : 또는 사용자 UID (정확히 일치)

로그인/가입 자체는 외부 인증 서비스 몫이고, 여기서는 전달된 신원만 확인한다.
"""
import logging
from typing import Optional

from fastapi import Header, HTTPException, Request

from . import config
from .errors import AccessDenied

logger = logging.getLogger(__name__)


def is_allowed_user(email: Optional[str], uid: Optional[str],
                    allowed_email: Optional[str] = None,
                    allowed_user_id: Optional[str] = None) -> bool:
    allowed_email = config.get_allowed_email() if allowed_email is None else allowed_email
    allowed_user_id = config.get_allowed_user_id() if allowed_user_id is None else allowed_user_id

    if allowed_email and email:
        return email.strip().lower() == allowed_email.strip().lower()
    if allowed_user_id:
        return (uid or "").strip() == allowed_user_id
    return False


def check_identity(email: Optional[str], uid: Optional[str]) -> None:
    if not config.get_allowed_email() and not config.get_allowed_user_id():
        raise HTTPException(500, "ALLOWED_EMAIL / ALLOWED_USER_ID is not set on server (.env not loaded)")
    if not email and not uid:
        raise HTTPException(401, "Login required")
    if not is_allowed_user(email, uid):
        logger.warning("Access denied for email=%s uid=%s", email, uid)
        raise AccessDenied("User is not allowed")


def require_user(
    request: Request,
    x_user_email: Optional[str] = Header(default=None, alias="X-User-Email"),
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
):
    """sql 저장소가 활성일 때만 신원 확인"""
    provider = request.app.state.provider
    if provider.backend != config.BACKEND_SQL:
        return
    check_identity(x_user_email, x_user_id)
