"""
Service Layer.

The update service contract and its HTTP implementation.
"""

from .contracts import UpdateService, call_collaborator
from .http_service import HttpUpdateService

__all__ = ["HttpUpdateService", "UpdateService", "call_collaborator"]
