"""
Error taxonomy for catalog operations.

Every error carries a stable ``code`` and serializes with ``to_dict()`` so
the API layer can return it unchanged.
"""

from typing import Any, Dict, List, Optional


class CatalogError(Exception):
    """Base class for all catalog errors."""

    code = "CATALOG_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        if code is not None:
            self.code = code
        super().__init__(f"{self.code}: {message}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {"error": self.code, "message": self.message}


class ValidationError(CatalogError):
    """Raised before any write when submitted input is malformed.

    Attributes:
        field: Name of the offending input field, for inline display
    """

    code = "VALIDATION_ERROR"

    def __init__(self, field: str, message: str, code: str = "VALIDATION_ERROR"):
        self.field = field
        super().__init__(message, code)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["field"] = self.field
        return data


class GatewayError(CatalogError):
    """Raised when a read, write or upload against the backend fails."""

    code = "GATEWAY_ERROR"

    def __init__(self, operation: str, collection: str, message: str):
        self.operation = operation
        self.collection = collection
        super().__init__(f"{operation} on '{collection}' failed: {message}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"operation": self.operation, "collection": self.collection})
        return data


class CatalogLoadError(CatalogError):
    """Raised when the catalog could not be fully loaded and enriched."""

    code = "CATALOG_LOAD_FAILED"


class AuthRequiredError(CatalogError):
    """Raised when a mutating action is attempted without a signed-in user."""

    code = "AUTH_REQUIRED"

    def __init__(self, message: str = "Sign in to continue."):
        super().__init__(message)


class NotOwnerError(CatalogError):
    """Raised when a non-owner tries to edit or delete an artifact."""

    code = "NOT_OWNER"

    def __init__(self, artifact_id: str):
        self.artifact_id = artifact_id
        super().__init__(f"Only the creator can modify artifact {artifact_id}.")


class ArtifactNotFoundError(CatalogError):
    """Raised when an artifact id does not resolve to a row."""

    code = "ARTIFACT_NOT_FOUND"

    def __init__(self, artifact_id: str):
        self.artifact_id = artifact_id
        super().__init__(f"Artifact {artifact_id} not found.")


class ConfirmationRequiredError(CatalogError):
    """Raised when a destructive action is requested without confirmation."""

    code = "CONFIRMATION_REQUIRED"


class SagaError(CatalogError):
    """Raised when a multi-step write fails partway.

    Completed steps are not rolled back; ``completed`` lists them so the
    caller can report which collections may be left inconsistent.
    """

    code = "WRITE_SEQUENCE_FAILED"

    def __init__(self, saga: str, step: str, completed: List[str], cause: Exception):
        self.saga = saga
        self.step = step
        self.completed = list(completed)
        self.cause = cause
        super().__init__(f"{saga} failed at step '{step}': {cause}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {"saga": self.saga, "step": self.step, "completed": self.completed}
        )
        return data
