"""Base marker for domain ports (interfaces implemented in infrastructure/)."""

from typing import Protocol


class Port(Protocol):
    """Marker base for all ports."""


__all__ = ["Port"]
