"""
Error taxonomy shared by the generation and deploy gateways.

Every failure a gateway can report is a ``SiteEngineError`` subclass with a
stable ``kind`` string, an HTTP status and enough detail (raw model output,
command stderr/stdout) for an operator to see what went wrong. The API layer
renders them with ``to_payload()``.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Stable identifiers for every failure class"""
    UPSTREAM_UNREACHABLE = "upstream-unreachable"
    MALFORMED_OUTPUT = "malformed-output"
    DEPLOY_FAILED = "deploy-failed"
    DEPLOY_URL_MISSING = "deploy-url-missing"
    FILESYSTEM = "filesystem-error"
    INVALID_REQUEST = "invalid-request"
    ACTION_IN_FLIGHT = "action-in-flight"
    INTERNAL = "internal-error"
    NOT_CONFIGURED = "not-configured"


class SiteEngineError(Exception):
    """Base class for structured gateway errors"""

    kind: ErrorKind = ErrorKind.INTERNAL
    status_code: int = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message, "kind": self.kind.value}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class UpstreamUnavailableError(SiteEngineError):
    """The completion API could not be reached or answered with an error"""
    kind = ErrorKind.UPSTREAM_UNREACHABLE
    status_code = 502


class MalformedOutputError(SiteEngineError):
    """The model replied, but not with a usable html/css/js JSON object"""
    kind = ErrorKind.MALFORMED_OUTPUT
    status_code = 500

    def __init__(self, raw: str, reason: Optional[str] = None):
        super().__init__("Invalid LLM output", details=reason)
        self.raw = raw

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["raw"] = self.raw
        return payload


class DeployFailedError(SiteEngineError):
    """The deploy command exited non-zero, timed out or could not start"""
    kind = ErrorKind.DEPLOY_FAILED
    status_code = 500

    def __init__(self, details: str, exit_code: Optional[int] = None):
        super().__init__("Deployment failed", details=details)
        self.exit_code = exit_code


class DeployUrlMissingError(SiteEngineError):
    """The deploy command succeeded but printed no recognisable site URL"""
    kind = ErrorKind.DEPLOY_URL_MISSING
    status_code = 500

    def __init__(self, output: str):
        super().__init__(
            "Deployment successful, but URL not found in output.",
            details=output
        )


class ScratchDirectoryError(SiteEngineError):
    """Staging files on local disk failed"""
    kind = ErrorKind.FILESYSTEM
    status_code = 500


class InvalidDeployRequestError(SiteEngineError):
    """A deploy file name would escape the scratch directory"""
    kind = ErrorKind.INVALID_REQUEST
    status_code = 400


class ActionInFlightError(SiteEngineError):
    """The same action is already running"""
    kind = ErrorKind.ACTION_IN_FLIGHT
    status_code = 409


class ConfigurationError(SiteEngineError):
    """A required credential or identifier is missing"""
    kind = ErrorKind.NOT_CONFIGURED
    status_code = 503
