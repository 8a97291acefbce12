"""
Temma Faults - Domain-specific fault types.

Provides concrete fault classes for each domain:
- FRAMEWORK / CONFIG faults (fatal, 500)
- HTTP faults (explicit status)
- APPLICATION faults (domain refusals mapped through a fixed table)
- LOADER faults (dependency injection, fatal, 500)
- IO faults (view templates)
"""

from typing import Any, Optional, Sequence

from .core import Fault, FaultDomain, Severity


# ============================================================================
# FRAMEWORK Faults
# ============================================================================

class FrameworkFault(Fault):
    """Fatal framework error (missing class, bad plugin, broken state)."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "FRAMEWORK_ERROR",
        domain: FaultDomain = FaultDomain.SYSTEM,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=domain,
            public=False,
            metadata=metadata,
        )


class ConfigFault(FrameworkFault):
    """Configuration is missing or malformed."""

    def __init__(self, message: str, *, code: str = "CONFIG_INVALID", **kwargs):
        super().__init__(message, code=code, domain=FaultDomain.CONFIG, **kwargs)


class RouteConfigFault(ConfigFault):
    """A router entry (pattern or exec spec) cannot be parsed."""

    def __init__(self, route: str, reason: str, **kwargs):
        super().__init__(
            f"Bad route '{route}': {reason}",
            code="ROUTE_INVALID",
            metadata={"route": route, "reason": reason, **kwargs.get("metadata", {})},
        )


class TooManyRebootsFault(FrameworkFault):
    """The dispatch was rebooted more times than allowed."""

    def __init__(self, limit: int):
        super().__init__(
            f"Request rebooted more than {limit} times",
            code="TOO_MANY_REBOOTS",
            domain=FaultDomain.FLOW,
            metadata={"limit": limit},
        )


# ============================================================================
# HTTP Faults
# ============================================================================

class HttpFault(Fault):
    """
    Explicit HTTP error.

    Raised for unresolvable controllers/actions (404) and for
    ``http_error()`` calls left on the response.
    """

    def __init__(self, status: int = 404, message: Optional[str] = None, **kwargs):
        self.status = status
        super().__init__(
            code=f"HTTP_{status}",
            message=message or f"HTTP error {status}",
            domain=FaultDomain.HTTP,
            public=True,
            metadata=kwargs.get("metadata"),
        )


# ============================================================================
# APPLICATION Faults
# ============================================================================

class ApplicationFault(Fault):
    """
    Domain-level failure raised by application code.

    The ``kind`` selects the HTTP status reported to the client.
    """

    API = "api"
    AUTHENTICATION = "authentication"
    UNAUTHORIZED = "unauthorized"
    BAD_PARAM = "bad_param"
    RETRY = "retry"

    STATUS_BY_KIND = {
        AUTHENTICATION: 401,
        UNAUTHORIZED: 403,
        RETRY: 449,
    }

    def __init__(self, message: str, kind: str = API, **kwargs):
        self.kind = kind
        super().__init__(
            code=f"APPLICATION_{kind.upper()}",
            message=message,
            domain=FaultDomain.SECURITY,
            public=True,
            metadata=kwargs.get("metadata"),
        )

    @property
    def status(self) -> int:
        return self.STATUS_BY_KIND.get(self.kind, 400)


# ============================================================================
# LOADER Faults
# ============================================================================

class LoaderFault(Fault):
    """Base class for dependency injection faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        severity: Severity = Severity.ERROR,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.LOADER,
            severity=severity,
            public=False,
            metadata=metadata,
        )


class BadParameterFault(LoaderFault):
    """A constructor or callable parameter could not be resolved."""

    def __init__(self, name: str, target: str):
        self.name = name
        self.target = target
        super().__init__(
            code="BAD_PARAMETER",
            message=f"Bad parameter '{name}' for {target}",
            metadata={"parameter": name, "target": target},
        )


class AbstractClassFault(LoaderFault):
    """Attempt to instantiate an abstract class."""

    def __init__(self, target: str):
        self.target = target
        super().__init__(
            code="ABSTRACT_CLASS",
            message=f"Cannot instantiate abstract class {target}",
            metadata={"target": target},
        )


class UnsupportedTypeFault(LoaderFault):
    """A parameter annotation cannot be used for autowiring."""

    def __init__(self, target: str, name: str):
        super().__init__(
            code="UNSUPPORTED_TYPE",
            message=f"Unsupported type annotation on parameter '{name}' of {target}",
            metadata={"parameter": name, "target": target},
        )


class CircularDependencyFault(LoaderFault):
    """A key was requested while it was already being resolved."""

    def __init__(self, key: str, chain: Sequence[str]):
        self.key = key
        self.chain = list(chain)
        super().__init__(
            code="CIRCULAR_DEPENDENCY",
            message=f"Circular dependency on '{key}': {' -> '.join(self.chain)}",
            metadata={"key": key, "chain": self.chain},
        )


# ============================================================================
# IO Faults
# ============================================================================

class TemplateNotFoundFault(Fault):
    """A view template does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            code="TEMPLATE_NOT_FOUND",
            message=f"Template '{path}' not found",
            domain=FaultDomain.IO,
            metadata={"path": path},
        )
