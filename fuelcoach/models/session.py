"""Authenticated user and session records."""

from dataclasses import dataclass, asdict
from typing import Optional


@dataclass(frozen=True)
class User:
    """User record as returned by the auth API."""

    id: int
    username: str
    email: str
    created_at: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        """Build from an API or storage payload.

        Raises:
            KeyError / ValueError / TypeError if the id is missing or not an integer
        """
        return cls(
            id=int(data["id"]),
            username=data.get("username") or "",
            email=data.get("email") or "",
            created_at=data.get("created_at"),
        )


@dataclass(frozen=True)
class Session:
    """An authenticated actor: user record plus bearer token."""

    user: User
    token: str

    @property
    def user_id(self) -> int:
        return self.user.id
