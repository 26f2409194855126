from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class Principal:
    username: str
    is_admin: bool = False

    def require_admin(self) -> None:
        if not self.is_admin:
            raise PermissionError("admin privileges required")

    def require_admin_or_user(self, username: str) -> None:
        if not (self.is_admin or self.username == username):
            raise PermissionError(f"not permitted to act on user: {username}")

    def to_claims(self) -> dict[str, Any]:
        return {"username": self.username, "isAdmin": self.is_admin}


def principal_from_claims(claims: dict[str, Any]) -> Principal | None:
    username = claims.get("username")
    if not isinstance(username, str) or not username:
        return None
    return Principal(username=username, is_admin=claims.get("isAdmin") is True)
