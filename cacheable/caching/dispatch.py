"""
Hook Dispatcher

Explicit routing of lifecycle events to the CacheHooks registered for an
entity type. A data-access layer calls dispatch() at each lifecycle point
instead of relying on framework callbacks.
"""

from collections.abc import Awaitable, Callable
from typing import Any

from cacheable.caching.models import EntityType, LifecycleEvent, entity_name
from cacheable.core.config.constants import Stage
from cacheable.core.exceptions import ConfigurationError
from cacheable.core.interfaces.hooks import CacheHooks
from cacheable.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)


class HookDispatcher:
    """
    Entity type -> CacheHooks.

    Usage:
        dispatcher = HookDispatcher()
        dispatcher.register("User", behavior)

        decision = await dispatcher.dispatch(LifecycleEvent.BEFORE_READ, "User", query)
        report = await dispatcher.dispatch(LifecycleEvent.AFTER_WRITE, "User", write_context)
    """

    def __init__(self):
        self._hooks: dict[str, CacheHooks] = {}

    def register(self, entity: EntityType, hooks: CacheHooks) -> None:
        if not isinstance(hooks, CacheHooks):
            raise ConfigurationError(
                f"{type(hooks).__name__} does not implement CacheHooks",
                details={"entity": entity_name(entity)},
            )
        name = entity_name(entity)
        self._hooks[name] = hooks
        log_stage(logger, Stage.CONFIGURATION, "Cache hooks registered", level="debug", entity=name)

    def unregister(self, entity: EntityType) -> None:
        self._hooks.pop(entity_name(entity), None)

    def hooks_for(self, entity: EntityType) -> CacheHooks:
        name = entity_name(entity)
        try:
            return self._hooks[name]
        except KeyError:
            raise ConfigurationError(
                f"No cache hooks registered for {name!r}",
                details={"entity": name, "registered": sorted(self._hooks)},
            )

    async def dispatch(self, event: LifecycleEvent | str, entity: EntityType, payload: Any) -> Any:
        """
        Invoke the capability that handles event.

        Returns whatever the capability returns: a ReadDecision for
        before_read, results for after_read, an InvalidationReport for the
        write events.
        """
        try:
            event = LifecycleEvent(event)
        except ValueError:
            raise ConfigurationError(
                f"Unknown lifecycle event {event!r}",
                details={"events": [e.value for e in LifecycleEvent]},
            )

        handler = self.handlers(self.hooks_for(entity))[event]
        return await handler(entity, payload)

    @staticmethod
    def handlers(hooks: CacheHooks) -> dict[LifecycleEvent, Callable[[EntityType, Any], Awaitable[Any]]]:
        return {
            LifecycleEvent.BEFORE_READ: hooks.before_read,
            LifecycleEvent.AFTER_READ: hooks.after_read,
            LifecycleEvent.AFTER_WRITE: hooks.after_write,
            LifecycleEvent.AFTER_DELETE: hooks.after_delete,
        }

    def __contains__(self, entity: EntityType) -> bool:
        return entity_name(entity) in self._hooks
