"""Service layer.

Subpackages
-----------
- :mod:`identity_service.services.auth`: authentication orchestrator
  (:class:`~identity_service.services.auth.service.AuthService`) and its DTOs.
- :mod:`identity_service.services._shared`: base service, domain errors and
  the ports (hexagonal interfaces) the orchestrator depends on.

Nothing is re-exported here so that low-level modules (configuration, models)
can import :mod:`identity_service.services._shared.errors` without pulling the
whole service graph.
"""
