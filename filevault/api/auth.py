"""Session login/logout and the dependencies that authenticate a request."""

import logging

from fastapi import APIRouter, Depends, Request, Response, Security, status
from fastapi.security import APIKeyHeader, HTTPBasic, HTTPBasicCredentials
from pydantic import BaseModel

from filevault.errors import Unauthorized
from filevault.models import User
from filevault.services import Services

basic_scheme = HTTPBasic(auto_error=False, scheme_name="Email and password")
token_scheme = APIKeyHeader(name="X-Token", auto_error=False, scheme_name="Session token")

app_auth = APIRouter(tags=["auth"])


def get_services(request: Request) -> Services:
    return request.app.state.services


async def optional_user(
    token: str | None = Security(token_scheme), services: Services = Depends(get_services)
) -> User | None:
    """The user of the session token, or None if there is no (live) session token"""
    return await services.sessions.resolve(token)


async def authenticated_user(user: User | None = Depends(optional_user)) -> User:
    if user is None:
        raise Unauthorized()
    return user


class TokenResponse(BaseModel):
    token: str


@app_auth.get("/connect")
async def connect(
    credentials: HTTPBasicCredentials | None = Security(basic_scheme), services: Services = Depends(get_services)
) -> TokenResponse:
    """Log in with HTTP basic authentication (email:password) and receive a session token."""
    if credentials is None:
        raise Unauthorized()
    user = await services.credentials.verify(credentials.username, credentials.password)
    if user is None:
        raise Unauthorized()
    token = await services.sessions.issue(user)
    logging.info(f"User {user.id} logged in")
    return TokenResponse(token=token)


@app_auth.get("/disconnect", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def disconnect(
    token: str | None = Security(token_scheme),
    user: User = Depends(authenticated_user),
    services: Services = Depends(get_services),
):
    """End the session of the given token."""
    if token:
        await services.sessions.revoke(token)
