"""Credential schemas for sign-in and sign-up forms."""

from pydantic import BaseModel, Field, field_validator


class Credentials(BaseModel):
    """Login form."""

    email: str = Field(min_length=1)
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.strip()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v


class Registration(Credentials):
    """Sign-up form."""

    username: str = Field(min_length=1)
