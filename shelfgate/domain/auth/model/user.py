"""User aggregate for the auth domain."""

from datetime import UTC, datetime

from pydantic import BaseModel


class User(BaseModel):
    """A library reader provisioned through an identity provider.

    Invariants:
    - (`user_id_from_idp`, `idp_code`) is unique; the same external subject
      coming from two IdPs is two distinct users
    - `id` is assigned by the store on first insert and never changes
    - users are never deleted by the auth subsystem
    """

    id: int | None = None
    user_id_from_idp: str
    idp_code: str
    email: str
    last_login_at: datetime

    @classmethod
    def create(cls, user_id_from_idp: str, idp_code: str, email: str) -> "User":
        """Create a new, not yet persisted user at login time."""
        return cls(
            user_id_from_idp=user_id_from_idp,
            idp_code=idp_code,
            email=email,
            last_login_at=datetime.now(UTC),
        )

    def record_login(self, email: str) -> None:
        """Refresh the mutable fields on a repeat login."""
        self.email = email
        self.last_login_at = datetime.now(UTC)
