from typing import Optional

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    email: str
    password: str = Field(..., min_length=6)
    name: str


class UserLogin(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    created_at: str
    # lets the profile page choose between "Connect GitHub" and the stats card
    github_connected: bool = False
    github_username: Optional[str] = None


class TokenResponse(BaseModel):
    token: str
    user: UserResponse
