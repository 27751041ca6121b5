"""Error taxonomy for the function controller.

Every error carries the HTTP status and a stable error code so the
error handling middleware can render it without knowing the concrete type.
"""

from typing import Any, Dict, Optional

from fastapi import status


class FaasError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "FAAS_ERROR"

    def __init__(self, detail: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(detail)
        self.detail = detail
        self.details = details or {}


class InvalidInputError(FaasError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "INVALID_INPUT"


class DeploymentNotFoundError(FaasError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "DEPLOYMENT_NOT_FOUND"

    def __init__(self, identifier: str):
        super().__init__("deployment not found", {"identifier": identifier})


class AliasNotFoundError(FaasError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "ALIAS_NOT_FOUND"

    def __init__(self, name: str):
        super().__init__("alias not found", {"alias": name})


class BuildLogNotFoundError(FaasError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "BUILD_LOG_NOT_FOUND"

    def __init__(self, deployment_id: str):
        super().__init__("build logs not found", {"deployment_id": deployment_id})


class NotReadyError(FaasError):
    status_code = status.HTTP_409_CONFLICT
    error_code = "NOT_READY"

    def __init__(self, deployment_id: str, current_status: str):
        super().__init__(
            "failed to start: function not ready",
            {"deployment_id": deployment_id, "status": current_status},
        )


class ExecutionError(FaasError):
    status_code = status.HTTP_502_BAD_GATEWAY
    error_code = "EXECUTION_FAILED"


class ExecutionTimeoutError(ExecutionError):
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    error_code = "EXECUTION_TIMEOUT"


class InvalidTransitionError(FaasError):
    error_code = "INVALID_TRANSITION"
