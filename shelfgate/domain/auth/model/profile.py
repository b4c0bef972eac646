"""Session profile: the authenticated caller as held in the session store."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SESSION_PROFILE_KEY = "user"
"""Session key under which the serialized profile is stored."""


class SessionProfile(BaseModel):
    """Profile bound to a session after a successful login.

    Serialized with camelCase keys so that clients of the user setup document
    see `bookIds`, `isAdmin`, `idpCode` and so on. Raw assertion attributes
    are carried as extra fields.

    Invariant: `book_ids` always comes from the access filter, never from the
    claimed set in the assertion.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    id: int
    email: str
    firstname: str = ""
    lastname: str = ""
    book_ids: list[int] = Field(default_factory=list)
    is_admin: bool = False
    idp_code: str
    idp_name: str
    idp_logo_src: str | None = None
    idp_small_logo_src: str | None = None
    idp_lang: str = "en"

    # Federation attributes used to drive single logout
    name_id: str | None = Field(default=None, alias="nameID")
    name_id_format: str | None = Field(default=None, alias="nameIDFormat")
    session_index: str | None = None

    @property
    def supports_single_logout(self) -> bool:
        return bool(self.name_id and self.name_id_format)

    def to_session(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_session(cls, session: Any) -> "SessionProfile | None":
        """Read the profile from session data, None if absent or unreadable."""
        data = session.get(SESSION_PROFILE_KEY) if session is not None else None
        if not isinstance(data, dict):
            return None
        try:
            return cls.model_validate(data)
        except ValueError:
            return None
