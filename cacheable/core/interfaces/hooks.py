"""
Lifecycle Hook Protocol

The named capabilities a data-access layer invokes around its reads and
writes. One implementation is registered per entity type with the
HookDispatcher.
"""

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from cacheable.caching.models import (
        EntityType,
        InvalidationReport,
        QuerySpec,
        ReadDecision,
        WriteContext,
    )


@runtime_checkable
class CacheHooks(Protocol):
    """
    Protocol for cache interception around data-access operations.

    before_read may short-circuit the read: when the returned decision says
    so, the caller must not run its executor and must use decision.results.
    """

    async def before_read(self, entity: "EntityType", query: "QuerySpec") -> "ReadDecision":
        ...

    async def after_read(self, entity: "EntityType", results: Any) -> Any:
        ...

    async def after_write(self, entity: "EntityType", context: "WriteContext") -> "InvalidationReport":
        ...

    async def after_delete(self, entity: "EntityType", context: "WriteContext") -> "InvalidationReport":
        ...
