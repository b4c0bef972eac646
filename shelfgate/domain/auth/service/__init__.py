"""Auth domain services."""

from .access import AccessFilter
from .gate import RequestGate
from .login import LoginProvisioner

__all__ = ["AccessFilter", "LoginProvisioner", "RequestGate"]
