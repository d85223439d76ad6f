"""
Error taxonomy shared by services, the cache and the API layer.

Services raise these; routers translate them into HTTP
status codes through the handlers registered in main.py.
"""

from sqlalchemy.exc import IntegrityError, SQLAlchemyError


class FinTrackError(Exception):
    """Base class for all domain errors."""

    status_code = 500


class ValidationError(FinTrackError, ValueError):
    """A field is missing, out of range or malformed. Nothing was written."""

    status_code = 400


class NotFoundError(FinTrackError, ValueError):
    """A referenced entity does not exist."""

    status_code = 404


class ConflictError(FinTrackError, ValueError):
    """A unique key would be duplicated."""

    status_code = 409


class ConstraintError(FinTrackError, ValueError):
    """An operation is blocked by existing references."""

    status_code = 409


class StoreError(FinTrackError):
    """The underlying store failed. The original error is chained as __cause__."""

    status_code = 500


def translate_store_error(exc: SQLAlchemyError) -> FinTrackError:
    """Map a SQLAlchemy failure onto the domain taxonomy."""
    if isinstance(exc, IntegrityError):
        return ConflictError(f"Integrity violation: {exc.orig}")
    return StoreError(str(exc))
