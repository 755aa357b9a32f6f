from typing import Optional

from pydantic import BaseModel


class AuthUser(BaseModel):
    id: str
    email: Optional[str] = None

    class Config:
        extra = "ignore"


class AuthSession(BaseModel):
    access_token: str
    user: AuthUser
