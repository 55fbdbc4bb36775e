"""
JWT identity provider

Sign-in happens elsewhere; this service only needs the opaque user id in
``sub``. A missing or invalid token simply means "no identity" and the use
cases decide whether that is acceptable.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger


class JwtAuth:
    def __init__(self) -> None:
        self.secret = settings.SECRET_KEY.get_secret_value()
        self.algorithm = settings.ALGORITHM
        self.token_expire_minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES

    def create_jwt_token(self, user_id: str, *, name: Optional[str] = None) -> str:
        now = datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            'sub': user_id,
            'iat': now,
            'exp': now + timedelta(minutes=self.token_expire_minutes),
        }
        if name:
            payload['name'] = name

        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode_jwt_token(self, token: str) -> Dict[str, Any]:
        return jwt.decode(token, self.secret, algorithms=[self.algorithm])

    def get_identity_from_jwt(self, token: Optional[str]) -> Optional[str]:
        if not token:
            return None
        try:
            payload = self.decode_jwt_token(token)
        except jwt.PyJWTError as e:
            Logger.base.info(f'🔒 [AUTH] Rejected token: {type(e).__name__}')
            return None

        subject = payload.get('sub')
        return subject if isinstance(subject, str) and subject else None
