"""Credential value types.

A CredentialPair is the unit of rotation: it is built in full before it is
compared or handed to any pool, and it is never mutated afterwards.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class CredentialPair:
    """Database username/password pair.

    Equality is structural over both fields and drives change detection.
    The password is kept out of repr() so pairs can be logged safely.
    """

    username: str
    password: str = field(repr=False)

    def to_dict(self) -> dict:
        """Convert to API-safe dictionary (no password)."""
        return {"username": self.username, "has_password": bool(self.password)}
