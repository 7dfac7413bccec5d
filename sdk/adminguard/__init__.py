"""AdminGuard Python SDK"""
from adminguard.client import AdminGuardClient

__version__ = "0.1.0"
__all__ = ["AdminGuardClient"]
