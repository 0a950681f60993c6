"""
tsg.errors

Error taxonomy shared by repositories, the orchestrator client and services.

Every error carries an `error_class` so the API layer can map it to a status
without knowing which component raised it.
"""

from __future__ import annotations

import enum


class ErrorClass(enum.StrEnum):
    not_found = "not_found"
    bad_request = "bad_request"
    server_error = "server_error"


class TsgError(Exception):
    """Base error for the service."""

    error_class: ErrorClass = ErrorClass.server_error


class MissingIdentifierError(TsgError):
    """A write that needs an identifier was attempted without one."""

    error_class = ErrorClass.bad_request


class AmbiguousLookupError(TsgError):
    """Lookup requested with neither an id nor a name."""

    error_class = ErrorClass.bad_request


class InvalidIdentifierError(TsgError):
    """Identifier failed to parse."""

    error_class = ErrorClass.bad_request


class DuplicateAccountError(TsgError):
    """An active account already uses this id or name."""

    error_class = ErrorClass.bad_request


class NotFoundError(TsgError):
    """Resource absent for the caller, or missing right after a write."""

    error_class = ErrorClass.not_found


class PersistenceError(TsgError):
    """Relational store failure."""


class OrchestratorError(TsgError):
    """Remote orchestrator failure; `status` is None when no response arrived."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


def classify(err: BaseException) -> ErrorClass:
    if isinstance(err, TsgError):
        return err.error_class
    return ErrorClass.server_error
