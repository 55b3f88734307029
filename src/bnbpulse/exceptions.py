"""
Custom exceptions for the BNB Pulse aggregation service.

This module defines the hierarchy of errors raised by the upstream toolkits,
the reconciliation engine and the configuration layer.

Propagation rules:
- ``UpstreamUnavailable`` and its subclasses are the only errors the metrics
  retry or convert into a named fallback.
- ``MissingCredentialsError`` is raised before any network call and always
  propagates.
- ``ReconciliationFailure`` is what a metric raises once every fallback branch
  is exhausted.
"""

from typing import Optional, Any, Dict


class PulseError(Exception):
    """
    Base exception for all BNB Pulse errors.

    Attributes:
        message: Human-readable error message, safe to return to clients
        error_code: Machine-readable error code
        context: Additional context information (never rendered to clients)
    """

    def __init__(self,
                 message: str,
                 error_code: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None
        }

# Configuration Related Errors

class ConfigurationError(PulseError):
    """Raised when there's an issue with configuration."""
    pass


class MissingCredentialsError(PulseError):
    """Raised when an integration is called without its key/secret."""

    def __init__(self, provider: str, missing: Optional[list] = None):
        names = ", ".join(missing) if missing else "credentials"
        super().__init__(
            message=f"{provider} credentials not configured: {names}",
            context={"provider": provider, "missing": missing or []}
        )
        self.provider = provider

# Upstream Related Errors

class UpstreamUnavailable(PulseError):
    """Base class for failures talking to an upstream provider."""

    def __init__(self,
                 provider: str,
                 message: str,
                 context: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        context = context or {}
        context["provider"] = provider
        super().__init__(message, context=context, cause=cause)
        self.provider = provider


class TransportError(UpstreamUnavailable):
    """Raised on a non-2xx status or a network failure reaching an upstream."""

    def __init__(self,
                 provider: str,
                 status_code: Optional[int] = None,
                 detail: Optional[str] = None,
                 cause: Optional[Exception] = None):
        if status_code is not None:
            message = f"{provider} request failed with HTTP {status_code}"
        else:
            message = f"{provider} request failed: {detail or 'network error'}"

        super().__init__(
            provider=provider,
            message=message,
            context={"status_code": status_code},
            cause=cause
        )
        self.status_code = status_code


class UpstreamProtocolError(UpstreamUnavailable):
    """Raised when a provider answers 200 but reports an error or a malformed payload."""

    def __init__(self, provider: str, detail: str, cause: Optional[Exception] = None):
        super().__init__(
            provider=provider,
            message=f"{provider} returned an error: {detail}",
            context={"detail": detail},
            cause=cause
        )
        self.detail = detail


class RpcError(UpstreamProtocolError):
    """Raised when a JSON-RPC response carries an ``error`` member."""

    def __init__(self, provider: str, method: str, rpc_message: str, rpc_code: Optional[int] = None):
        super().__init__(provider, f"{method}: {rpc_message}")
        self.method = method
        self.rpc_code = rpc_code
        self.context.update({"method": method, "rpc_code": rpc_code})

# Reconciliation Related Errors

class ReconciliationFailure(PulseError):
    """Raised when a metric has no usable value after all fallback branches."""

    def __init__(self, metric: str, reason: str, cause: Optional[Exception] = None):
        super().__init__(
            message=f"Unable to compute {metric}: {reason}",
            context={"metric": metric},
            cause=cause
        )
        self.metric = metric
        self.reason = reason
