"""API Endpoints for registering users."""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from filevault.api.auth import authenticated_user, get_services
from filevault.models import User
from filevault.services import Services

app_users = APIRouter(tags=["users"])


class CreateUserBody(BaseModel):
    """Body for registering a new user."""

    email: str | None = Field(None, description="Email address of the new user, used to log in")
    password: str | None = Field(None, description="Password of the new user")


class UserResponse(BaseModel):
    id: str
    email: str


@app_users.post("/users", status_code=status.HTTP_201_CREATED)
async def create_user(body: CreateUserBody, services: Services = Depends(get_services)) -> UserResponse:
    """Register a new user. The email address must not be registered yet."""
    user = await services.users.create(body.email, body.password)
    return UserResponse(id=user.id, email=user.email)


@app_users.get("/users/me")
async def get_current_user(user: User = Depends(authenticated_user)) -> UserResponse:
    """Get the user of the current session."""
    return UserResponse(id=user.id, email=user.email)
