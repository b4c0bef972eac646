"""Auth domain models."""

from .idp import Idp
from .profile import SESSION_PROFILE_KEY, SessionProfile
from .user import User

__all__ = [
    "Idp",
    "SESSION_PROFILE_KEY",
    "SessionProfile",
    "User",
]
