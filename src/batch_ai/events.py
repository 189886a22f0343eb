"""
Progress events emitted by the batch engine.

Item events for a batch are emitted after the whole batch has settled and
in input order, so a progress display sees the same sequence on every run.
"""

from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from enum import Enum

from .types import ItemOutcome
from .types import RunSummary


class EventType(Enum):
    """Types of events that can be emitted during a run."""

    RUN_STARTED = "run_started"
    BATCH_STARTED = "batch_started"
    ITEM_DONE = "item_done"
    RUN_DONE = "run_done"


@dataclass
class Event:
    """Base event with common fields."""

    type: EventType
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class RunStartedEvent(Event):
    """A model was selected and dispatch is about to begin."""

    type: EventType = field(default=EventType.RUN_STARTED)
    total: int = 0
    batch_count: int = 0
    model: str = ""


@dataclass
class BatchStartedEvent(Event):
    """A batch is being dispatched."""

    type: EventType = field(default=EventType.BATCH_STARTED)
    index: int = 0
    size: int = 0


@dataclass
class ItemDoneEvent(Event):
    """One target has an outcome."""

    type: EventType = field(default=EventType.ITEM_DONE)
    index: int = 0  # Position in the input target list
    processed: int = 0
    total: int = 0
    outcome: ItemOutcome | None = None


@dataclass
class RunDoneEvent(Event):
    """The run finished (normally or after cancellation)."""

    type: EventType = field(default=EventType.RUN_DONE)
    summary: RunSummary | None = None


EventCallback = Callable[[Event], None]
