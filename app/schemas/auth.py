"""
Auth schemas - login request and JWT response.
"""

from pydantic import BaseModel, EmailStr


class UserLogin(BaseModel):
    """
    Schema for POST /auth/login request body.

    Example request body:
    {
        "email": "admin@innomind.mx",
        "password": "securePassword123"
    }
    """
    email: EmailStr
    password: str


class Token(BaseModel):
    """
    Schema for POST /auth/login response.

    Clients send it back as: Authorization: Bearer <access_token>
    """
    access_token: str
    token_type: str = "bearer"
