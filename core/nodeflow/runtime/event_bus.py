"""
Event Bus - Pub/sub for workflow run progress.

Lets observers (chat transcripts, trace views, tests):
- Follow node starts, completions and skips as they happen
- Watch which branch a conditional node took
- Wait for a run to finish
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)


class EventType(StrEnum):
    """Types of events that can be published."""

    # Run lifecycle
    EXECUTION_STARTED = "execution_started"
    EXECUTION_COMPLETED = "execution_completed"
    EXECUTION_FAILED = "execution_failed"
    EXECUTION_CANCELLED = "execution_cancelled"

    # Node lifecycle
    NODE_STARTED = "node_started"
    NODE_COMPLETED = "node_completed"
    NODE_SKIPPED = "node_skipped"

    # Routing
    BRANCH_SELECTED = "branch_selected"

    # Custom events
    CUSTOM = "custom"


@dataclass
class WorkflowEvent:
    """An event emitted during a workflow run."""

    type: EventType
    run_id: str
    node_id: str | None = None  # Which node the event is about
    workflow_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "type": self.type.value,
            "run_id": self.run_id,
            "node_id": self.node_id,
            "workflow_id": self.workflow_id,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }


# Type for event handlers
EventHandler = Callable[[WorkflowEvent], Awaitable[None]]


@dataclass
class Subscription:
    """A subscription to events."""

    id: str
    event_types: set[EventType]
    handler: EventHandler
    filter_run: str | None = None  # Only receive events from this run
    filter_node: str | None = None  # Only receive events about this node


class EventBus:
    """
    Pub/sub event bus for workflow runs.

    Features:
    - Async event handling
    - Type-based subscriptions
    - Run/node filtering
    - Event history for debugging

    Example:
        bus = EventBus()

        async def on_node_done(event: WorkflowEvent):
            print(f"{event.node_id} finished: {event.data['status']}")

        bus.subscribe(
            event_types=[EventType.NODE_COMPLETED],
            handler=on_node_done,
        )

        executor = WorkflowExecutor(registry, event_bus=bus)
    """

    def __init__(
        self,
        max_history: int = 1000,
        max_concurrent_handlers: int = 10,
    ):
        """
        Initialize event bus.

        Args:
            max_history: Maximum events to keep in history
            max_concurrent_handlers: Maximum concurrent handler executions
        """
        self._subscriptions: dict[str, Subscription] = {}
        self._event_history: list[WorkflowEvent] = []
        self._max_history = max_history
        self._semaphore = asyncio.Semaphore(max_concurrent_handlers)
        self._subscription_counter = 0
        self._lock = asyncio.Lock()

    def subscribe(
        self,
        event_types: list[EventType],
        handler: EventHandler,
        filter_run: str | None = None,
        filter_node: str | None = None,
    ) -> str:
        """
        Subscribe to events.

        Args:
            event_types: Types of events to receive
            handler: Async function to call when event occurs
            filter_run: Only receive events from this run
            filter_node: Only receive events about this node

        Returns:
            Subscription ID (use to unsubscribe)
        """
        self._subscription_counter += 1
        sub_id = f"sub_{self._subscription_counter}"

        self._subscriptions[sub_id] = Subscription(
            id=sub_id,
            event_types=set(event_types),
            handler=handler,
            filter_run=filter_run,
            filter_node=filter_node,
        )
        logger.debug(f"Subscription {sub_id} registered for {event_types}")

        return sub_id

    def unsubscribe(self, subscription_id: str) -> bool:
        """
        Unsubscribe from events.

        Returns:
            True if subscription was found and removed
        """
        if subscription_id in self._subscriptions:
            del self._subscriptions[subscription_id]
            logger.debug(f"Subscription {subscription_id} removed")
            return True
        return False

    async def publish(self, event: WorkflowEvent) -> None:
        """Publish an event to all matching subscribers."""
        async with self._lock:
            self._event_history.append(event)
            if len(self._event_history) > self._max_history:
                self._event_history = self._event_history[-self._max_history :]

        matching_handlers = [
            sub.handler for sub in self._subscriptions.values() if self._matches(sub, event)
        ]

        if matching_handlers:
            await self._execute_handlers(event, matching_handlers)

    def _matches(self, subscription: Subscription, event: WorkflowEvent) -> bool:
        """Check if a subscription matches an event."""
        if event.type not in subscription.event_types:
            return False

        if subscription.filter_run and subscription.filter_run != event.run_id:
            return False

        if subscription.filter_node and subscription.filter_node != event.node_id:
            return False

        return True

    async def _execute_handlers(
        self,
        event: WorkflowEvent,
        handlers: list[EventHandler],
    ) -> None:
        """Execute handlers concurrently with rate limiting."""

        async def run_handler(handler: EventHandler) -> None:
            async with self._semaphore:
                try:
                    await handler(event)
                except Exception as e:
                    logger.error(f"Handler error for {event.type}: {e}")

        await asyncio.gather(*[run_handler(h) for h in handlers], return_exceptions=True)

    # === CONVENIENCE PUBLISHERS ===

    async def emit_execution_started(
        self,
        run_id: str,
        workflow_id: str | None = None,
        message: str = "",
        node_count: int = 0,
    ) -> None:
        """Emit run started event."""
        await self.publish(
            WorkflowEvent(
                type=EventType.EXECUTION_STARTED,
                run_id=run_id,
                workflow_id=workflow_id,
                data={"message": message, "node_count": node_count},
            )
        )

    async def emit_execution_completed(
        self,
        run_id: str,
        workflow_id: str | None = None,
        final_output: str = "",
        duration_ms: int = 0,
    ) -> None:
        """Emit run completed event."""
        await self.publish(
            WorkflowEvent(
                type=EventType.EXECUTION_COMPLETED,
                run_id=run_id,
                workflow_id=workflow_id,
                data={"final_output": final_output, "duration_ms": duration_ms},
            )
        )

    async def emit_execution_failed(
        self,
        run_id: str,
        error: str,
        workflow_id: str | None = None,
    ) -> None:
        """Emit run failed event."""
        await self.publish(
            WorkflowEvent(
                type=EventType.EXECUTION_FAILED,
                run_id=run_id,
                workflow_id=workflow_id,
                data={"error": error},
            )
        )

    async def emit_execution_cancelled(
        self,
        run_id: str,
        reason: str,
        workflow_id: str | None = None,
    ) -> None:
        """Emit run cancelled event."""
        await self.publish(
            WorkflowEvent(
                type=EventType.EXECUTION_CANCELLED,
                run_id=run_id,
                workflow_id=workflow_id,
                data={"reason": reason},
            )
        )

    async def emit_node_started(
        self,
        run_id: str,
        node_id: str,
        node_type: str,
        workflow_id: str | None = None,
    ) -> None:
        """Emit node started event."""
        await self.publish(
            WorkflowEvent(
                type=EventType.NODE_STARTED,
                run_id=run_id,
                node_id=node_id,
                workflow_id=workflow_id,
                data={"node_type": node_type},
            )
        )

    async def emit_node_completed(
        self,
        run_id: str,
        node_id: str,
        status: str,
        duration_ms: int | None = None,
        error: str | None = None,
        workflow_id: str | None = None,
    ) -> None:
        """Emit node completed event (success or error)."""
        await self.publish(
            WorkflowEvent(
                type=EventType.NODE_COMPLETED,
                run_id=run_id,
                node_id=node_id,
                workflow_id=workflow_id,
                data={"status": status, "duration_ms": duration_ms, "error": error},
            )
        )

    async def emit_node_skipped(
        self,
        run_id: str,
        node_id: str,
        reason: str,
        workflow_id: str | None = None,
    ) -> None:
        """Emit node skipped event."""
        await self.publish(
            WorkflowEvent(
                type=EventType.NODE_SKIPPED,
                run_id=run_id,
                node_id=node_id,
                workflow_id=workflow_id,
                data={"reason": reason},
            )
        )

    async def emit_branch_selected(
        self,
        run_id: str,
        node_id: str,
        branch: str,
        pruned: list[str],
        workflow_id: str | None = None,
    ) -> None:
        """Emit branch selected event for a conditional node."""
        await self.publish(
            WorkflowEvent(
                type=EventType.BRANCH_SELECTED,
                run_id=run_id,
                node_id=node_id,
                workflow_id=workflow_id,
                data={"branch": branch, "pruned": pruned},
            )
        )

    # === QUERY OPERATIONS ===

    def get_history(
        self,
        event_type: EventType | None = None,
        run_id: str | None = None,
        node_id: str | None = None,
        limit: int = 100,
    ) -> list[WorkflowEvent]:
        """
        Get event history with optional filtering.

        Returns:
            List of matching events (most recent first)
        """
        events = self._event_history[::-1]

        if event_type:
            events = [e for e in events if e.type == event_type]
        if run_id:
            events = [e for e in events if e.run_id == run_id]
        if node_id:
            events = [e for e in events if e.node_id == node_id]

        return events[:limit]

    def get_stats(self) -> dict:
        """Get event bus statistics."""
        type_counts: dict[str, int] = {}
        for event in self._event_history:
            type_counts[event.type.value] = type_counts.get(event.type.value, 0) + 1

        return {
            "total_events": len(self._event_history),
            "subscriptions": len(self._subscriptions),
            "events_by_type": type_counts,
        }

    # === WAITING OPERATIONS ===

    async def wait_for(
        self,
        event_type: EventType,
        run_id: str | None = None,
        node_id: str | None = None,
        timeout: float | None = None,
    ) -> WorkflowEvent | None:
        """
        Wait for a specific event to occur.

        Returns:
            The event if received, None if timeout
        """
        result: WorkflowEvent | None = None
        event_received = asyncio.Event()

        async def handler(event: WorkflowEvent) -> None:
            nonlocal result
            result = event
            event_received.set()

        sub_id = self.subscribe(
            event_types=[event_type],
            handler=handler,
            filter_run=run_id,
            filter_node=node_id,
        )

        try:
            if timeout:
                try:
                    await asyncio.wait_for(event_received.wait(), timeout=timeout)
                except TimeoutError:
                    return None
            else:
                await event_received.wait()

            return result
        finally:
            self.unsubscribe(sub_id)
