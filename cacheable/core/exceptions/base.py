"""
Base Exception Class

The base exception every cache-layer error inherits from, plus
ConfigurationError which is fundamental enough to live beside it.
"""

from typing import Any


class CacheableError(Exception):
    """
    Base exception for all cache-layer errors.

    Attributes:
        message: Error message
        unit_id: Unit-of-work ID for correlation (if available)
        details: Additional error details (dict)

    Example:
        raise CacheBackendError(
            "Redis DEL failed",
            unit_id="req-42",
            details={"key": "User::getById-7", "backend": "default"}
        )
    """

    def __init__(
        self, message: str, unit_id: str | None = None, details: dict[str, Any] | None = None
    ):
        self.message = message
        self.unit_id = unit_id
        self.details = (details or {}).copy()
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for logging.

        Returns:
            Dict with error_type, message, unit_id, and details
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "unit_id": self.unit_id,
            "details": self.details,
        }

    def with_suggestion(self, suggestion: str) -> "CacheableError":
        """Add a suggestion to help callers fix the error. Returns self."""
        self.details["suggestion"] = suggestion
        return self

    def with_context(self, **context) -> "CacheableError":
        """Add additional context to the error details. Returns self."""
        self.details.update(context)
        return self

    def __repr__(self) -> str:
        details_str = f", details={self.details}" if self.details else ""
        unit_id_str = f", unit_id='{self.unit_id}'" if self.unit_id else ""
        return f"{self.__class__.__name__}(message='{self.message}'{unit_id_str}{details_str})"

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        message: str | None = None,
        unit_id: str | None = None,
        **details
    ) -> "CacheableError":
        """
        Create an error of this class from another exception.

        Useful for wrapping third-party exceptions with additional context.

        Example:
            >>> try:
            ...     await client.get(key)
            ... except redis.ConnectionError as e:
            ...     raise CacheConnectionError.from_exception(e, key=key)
        """
        error_message = message or str(exc)
        error_details = {
            "original_error": exc.__class__.__name__,
            "original_message": str(exc),
            **details
        }
        return cls(error_message, unit_id=unit_id, details=error_details)


class ConfigurationError(CacheableError):
    """
    Raised when configuration is invalid or missing.

    Common causes:
    - Entity type used before it was registered
    - Invalid entity settings (bad reset hook, unparseable TTL)
    - Unknown cache backend id
    - Lifecycle event dispatched for an entity with no hooks
    """
    pass
