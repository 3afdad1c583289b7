from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class UserRecord(BaseModel):
    id: int
    email: str
    password_hash: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    created_at: datetime


class SignupRequest(BaseModel):
    email: str = Field(
        min_length=1,
        max_length=320,
        description="Login email; stored lower-cased.",
        examples=["admin@noviq.example"],
    )
    password: str = Field(min_length=1, max_length=1024, examples=["correct horse battery"])
    first_name: Optional[str] = Field(default=None, max_length=200, examples=["Ada"])
    last_name: Optional[str] = Field(default=None, max_length=200, examples=["Lovelace"])


class LoginRequest(BaseModel):
    email: str = Field(min_length=1, max_length=320, examples=["admin@noviq.example"])
    password: str = Field(min_length=1, max_length=1024, examples=["correct horse battery"])


class UserProfile(BaseModel):
    id: int = Field(examples=[1])
    email: str = Field(examples=["admin@noviq.example"])
    first_name: Optional[str] = Field(default=None, examples=["Ada"])
    last_name: Optional[str] = Field(default=None, examples=["Lovelace"])


class AuthResponse(BaseModel):
    user: UserProfile
