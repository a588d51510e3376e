# identity_service/services/_shared/base.py
from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

from identity_service.core import errors as api_errors
from identity_service.services._shared.errors import (
    IdentityProviderUnavailableError,
    InvalidOperationError,
    ServiceError,
)
from identity_service.uow.base import UnitOfWork

UnitOfWorkFactory = Callable[[], UnitOfWork]
Clock = Callable[[], datetime]


def _default_uow_factory() -> UnitOfWork:
    from identity_service.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

    return SQLAlchemyUnitOfWork()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide a helper to run read-write units of work.
    * Own the clock so tests can pin "now".
    * Centralize error translation.

    Notes
    -----
    - Services must never touch the global session; always use a Unit of Work.
    - Domain rules (state transitions, invariants) live in the models.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory | None = None,
        clock: Clock | None = None,
    ) -> None:
        """
        Initialize the base service.

        :param uow_factory: Callable returning a fresh Unit of Work per operation.
        :type uow_factory: Callable[[], UnitOfWork] | None
        :param clock: Callable returning the current timezone-aware UTC time.
        :type clock: Callable[[], datetime] | None
        """
        self._uow_factory = uow_factory or _default_uow_factory
        self._clock = clock or _utcnow

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> UnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: UoW instance (commit on success, rollback on error).
        :rtype: UnitOfWork
        """
        return self._uow_factory()

    def now_utc(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        return self._clock()

    # -------------------------- Error handling ------------------------------

    def translate_exceptions(self, exc: Exception) -> Exception:
        """
        Map domain/service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        if isinstance(exc, IdentityProviderUnavailableError):
            # → 503 Service Unavailable
            return api_errors.ServiceUnavailable(str(exc))

        if isinstance(exc, InvalidOperationError):
            # → 409 Conflict
            return api_errors.Conflict(str(exc))

        # Any other ServiceError subclass → 400 Bad Request
        if isinstance(exc, ServiceError):
            return api_errors.APIError(
                message=str(exc),
                status_code=400,
                code="bad_request",
            )

        # Fallback: return untouched (will bubble up to Flask handler)
        return exc
