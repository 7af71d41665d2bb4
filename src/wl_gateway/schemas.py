"""Pydantic request/response schemas for the auth endpoints.

All responses are wrapped in ApiResponse at the router layer.
"""

from pydantic import BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    email: EmailStr
    username: str = Field(..., min_length=3, max_length=16)
    password: str = Field(..., min_length=8, max_length=32)


class LoginRequest(BaseModel):
    username: str
    password: str


class RegisterResponse(BaseModel):
    user_id: str


class LoginResponse(BaseModel):
    token: str
