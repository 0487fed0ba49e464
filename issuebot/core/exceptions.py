"""
Custom exception hierarchy for issuebot.
Provides structured error handling with proper HTTP status codes.
"""

from typing import Any, Optional, Sequence


class IssueBotError(Exception):
    """Base exception for all issuebot errors."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[dict[str, Any]] = None,
        status_code: int = 500,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(IssueBotError):
    """Error in application configuration."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            code="CONFIGURATION_ERROR",
            details=details,
            status_code=500,
        )


# =============================================================================
# Validation Errors (400)
# =============================================================================


class ValidationError(IssueBotError):
    """Input validation failed."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            details=details,
            status_code=400,
        )


class InvalidEventError(ValidationError):
    """Webhook payload is missing fields the router needs."""

    def __init__(self, message: str, event: Optional[str] = None) -> None:
        details = {"event": event} if event else {}
        super().__init__(message=message, details=details)
        self.code = "INVALID_EVENT"


class FeatureRequestError(ValidationError):
    """Issue body does not describe which files to modify."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message)
        self.code = "INVALID_FEATURE_REQUEST"


# =============================================================================
# Authentication Errors (401)
# =============================================================================


class AuthenticationError(IssueBotError):
    """Authentication failed."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(
            message=message,
            code="AUTHENTICATION_REQUIRED",
            status_code=401,
        )


class WebhookSignatureError(AuthenticationError):
    """Webhook payload signature is missing or does not match."""

    def __init__(self, message: str = "Invalid webhook signature") -> None:
        super().__init__(message=message)
        self.code = "INVALID_SIGNATURE"


# =============================================================================
# External Service Errors (502)
# =============================================================================


class ExternalServiceError(IssueBotError):
    """Error communicating with external service."""

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=f"{service_name} error: {message}",
            code="EXTERNAL_SERVICE_ERROR",
            details={"service": service_name, **(details or {})},
            status_code=502,
        )


class GitHubAPIError(ExternalServiceError):
    """Error returned by the GitHub REST API."""

    def __init__(
        self,
        message: str,
        upstream_status: Optional[int] = None,
        endpoint: Optional[str] = None,
    ) -> None:
        details: dict[str, Any] = {}
        if upstream_status is not None:
            details["upstream_status"] = upstream_status
        if endpoint:
            details["endpoint"] = endpoint
        super().__init__(service_name="GitHub", message=message, details=details)
        self.code = "GITHUB_API_ERROR"
        self.upstream_status = upstream_status

    @property
    def is_not_found(self) -> bool:
        return self.upstream_status == 404

    @property
    def retryable(self) -> bool:
        """Transport failures and 5xx responses are worth another attempt."""
        return self.upstream_status is None or self.upstream_status >= 500


class InstallationAuthError(ExternalServiceError):
    """Could not obtain an installation access token."""

    def __init__(self, installation_id: int, message: str) -> None:
        super().__init__(
            service_name="GitHub App",
            message=message,
            details={"installation_id": installation_id},
        )
        self.code = "INSTALLATION_AUTH_ERROR"


class GenerationError(ExternalServiceError):
    """Error communicating with the text-generation backend."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(service_name="Gemini", message=message, details=details)
        self.code = "GENERATION_ERROR"


# =============================================================================
# Process Errors
# =============================================================================


class CommandError(IssueBotError):
    """An external process exited non-zero or timed out."""

    def __init__(
        self,
        args: Sequence[str],
        returncode: Optional[int],
        output: str = "",
        message: Optional[str] = None,
    ) -> None:
        program = args[0] if args else "<unknown>"
        if message is None:
            message = f"'{program}' exited with status {returncode}"
        super().__init__(
            message=message,
            code="COMMAND_FAILED",
            details={"program": program, "returncode": returncode},
            status_code=500,
        )
        self.returncode = returncode
        self.output = output


class PatchAgentError(CommandError):
    """The external patch agent failed to modify the files."""

    def __init__(
        self,
        args: Sequence[str],
        returncode: Optional[int],
        output: str = "",
        message: Optional[str] = None,
    ) -> None:
        super().__init__(args, returncode, output, message)
        self.code = "PATCH_AGENT_FAILED"


# =============================================================================
# Workflow Errors (422)
# =============================================================================


class WorkflowError(IssueBotError):
    """Error during workflow execution."""

    def __init__(
        self,
        workflow_name: str,
        step: Optional[str] = None,
        message: str = "Workflow execution failed",
    ) -> None:
        details = {"workflow": workflow_name}
        if step:
            details["step"] = step

        super().__init__(
            message=message,
            code="WORKFLOW_ERROR",
            details=details,
            status_code=422,
        )
        self.workflow_name = workflow_name
        self.step = step
