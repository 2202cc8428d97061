"""Typed domain exceptions.

The HTTP layer maps each class to a status code; the service layer raises
them before any write happens, except ``PersistenceError`` which wraps a
failed write.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ValidationError(DomainError):
    """Bad input. Maps to HTTP 400."""


class UnknownModeError(ValidationError):
    def __init__(self, mode_key: str) -> None:
        super().__init__(f"Unknown mode '{mode_key}'")
        self.mode_key = mode_key


class AuthenticationError(DomainError):
    """Missing or invalid credentials. Maps to HTTP 401."""


class AccessDeniedError(DomainError):
    """The caller's identity does not own the resource. Maps to HTTP 403."""

    def __init__(self, resource_type: str, identifier: str) -> None:
        super().__init__(f"Access to {resource_type} '{identifier}' denied")
        self.resource_type = resource_type
        self.identifier = identifier


class NotFoundError(DomainError):
    """Resource was not found. Maps to HTTP 404."""

    def __init__(self, resource_type: str, identifier: str) -> None:
        super().__init__(f"{resource_type} '{identifier}' not found")
        self.resource_type = resource_type
        self.identifier = identifier


class ConflictError(DomainError):
    """Resource conflict (e.g., duplicate username). Maps to HTTP 409."""


class PersistenceError(DomainError):
    """A store write failed. Fatal for the request."""


class ProviderError(Exception):
    """An upstream LLM provider call failed.

    Never surfaced to callers; the orchestrator recovers from it.
    """

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
