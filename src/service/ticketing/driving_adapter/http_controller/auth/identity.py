from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import Cookie, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.platform.config.di import Container
from src.service.ticketing.driving_adapter.http_controller.auth.jwt_auth import JwtAuth


_bearer = HTTPBearer(auto_error=False)


@inject
async def get_current_identity(
    jwt_auth: JwtAuth = Depends(Provide[Container.jwt_auth]),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    access_token: Optional[str] = Cookie(None),
) -> Optional[str]:
    """
    Caller's user id from a Bearer header or the access_token cookie, else None.

    Stateless: nothing is looked up, so it is safe for long-lived SSE requests.
    """
    token = credentials.credentials if credentials else access_token
    return jwt_auth.get_identity_from_jwt(token)
