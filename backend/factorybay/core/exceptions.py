"""
Domain exceptions raised by repositories and services.

Routers translate these into HTTP responses; the handler in main.py catches
any that escape a router.
"""
from typing import Any, Dict, Optional


class FactoryBayError(Exception):
    """Base class for expected, user-facing failures"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(FactoryBayError):
    status_code = 404


class ValidationError(FactoryBayError):
    status_code = 400


class ConflictError(FactoryBayError):
    """Duplicate keys, or deletes blocked by dependent nodes"""

    status_code = 409


class HierarchyCycleError(FactoryBayError):
    """A parent assignment would make a node its own ancestor"""

    status_code = 409

    def __init__(self, message: str, conflicting_parent: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.conflicting_parent = conflicting_parent


class AuthenticationError(FactoryBayError):
    status_code = 401


class PermissionDeniedError(FactoryBayError):
    status_code = 403
