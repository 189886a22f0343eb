"""
Batch engine: applies one operation to many targets through the LLM gateway.

Targets are split into consecutive batches. Items within a batch run
concurrently; batches run one after another with a short pause between them
to ease rate limits. One failed item never affects its siblings, and only
one run can be active per engine at a time.

Example:
    engine = BatchEngine(gateway, sink=ResultSink(results_dir))
    summary = await engine.process(targets, prompt, batch_size=4)
    print(f"{summary.total_successful}/{summary.total_processed} succeeded")
"""

import asyncio
import logging
import time
import uuid
from collections.abc import Iterator
from collections.abc import Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TypeVar

from . import templates
from .content import TargetReader
from .events import BatchStartedEvent
from .events import Event
from .events import EventCallback
from .events import ItemDoneEvent
from .events import RunDoneEvent
from .events import RunStartedEvent
from .exceptions import BatchAIError
from .exceptions import ConcurrencyViolationError
from .exceptions import NoModelAvailableError
from .provider import LLMGateway
from .sink import ResultSink
from .types import GenerationConfig
from .types import ItemOutcome
from .types import LLMRequest
from .types import Operation
from .types import PromptOperation
from .types import RunSummary
from .types import Target

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Pause between batches when more than one item runs at a time
BATCH_DELAY_SECONDS = 1.0


class CancellationToken:
    """
    Cooperative cancellation signal for one run.

    The engine checks it only between batches. Requests already in flight
    are never interrupted; their outcomes are kept.
    """

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled


@dataclass
class EngineState:
    """Run state owned by one engine instance."""

    active: bool = False
    cancellation: CancellationToken | None = None


def create_batches(items: Sequence[T], batch_size: int) -> list[list[T]]:
    """Split items into consecutive batches; the last one may be smaller."""
    if batch_size < 1:
        raise ValueError(f"Batch size must be at least 1, got {batch_size}")
    return [list(items[i : i + batch_size]) for i in range(0, len(items), batch_size)]


class BatchEngine:
    """
    Runs operations over target lists.

    Features:
    - Bounded concurrency: at most `batch_size` requests in flight
    - All-settled batches: item failures are recorded, not raised
    - Results in input order, whatever order requests complete in
    - Cooperative cancellation checked at batch boundaries
    - Exclusive runs: a second process() call fails while one is active
    """

    def __init__(
        self,
        gateway: LLMGateway,
        sink: ResultSink | None = None,
        reader: TargetReader | None = None,
        *,
        workspace_path: str = "",
        generation: GenerationConfig | None = None,
        batch_delay: float = BATCH_DELAY_SECONDS,
    ):
        """
        Initialize the engine.

        Args:
            gateway: Gateway to the configured model backend
            sink: Where results and run reports go (nothing is written if None)
            reader: Reads target content (defaults to TargetReader())
            workspace_path: Value for {{WORKSPACE_PATH}} in templates
            generation: Temperature and output token limit for every request
            batch_delay: Seconds to wait between batches when batch_size > 1
        """
        self.gateway = gateway
        self.sink = sink or ResultSink(None)
        self.reader = reader or TargetReader()
        self.workspace_path = workspace_path
        self.generation = generation or GenerationConfig()
        self.batch_delay = batch_delay
        self._state = EngineState()

    def is_active(self) -> bool:
        """True while a run is in progress."""
        return self._state.active

    def cancel(self) -> None:
        """Ask the active run, if any, to stop after its current batch."""
        token = self._state.cancellation
        if token is not None:
            logger.info("Cancellation requested")
            token.cancel()

    @contextmanager
    def _claim(self, token: CancellationToken) -> Iterator[None]:
        # Check-and-set has no await in between, so it cannot interleave
        # with another coroutine on the same loop.
        if self._state.active:
            raise ConcurrencyViolationError()
        self._state.active = True
        self._state.cancellation = token
        try:
            yield
        finally:
            self._state.active = False
            self._state.cancellation = None

    async def process(
        self,
        targets: Sequence[Target],
        operation: Operation,
        batch_size: int = 1,
        *,
        cancellation: CancellationToken | None = None,
        on_event: EventCallback | None = None,
    ) -> RunSummary:
        """
        Apply an operation to every target.

        Args:
            targets: Files or directories to process, in order
            operation: Task or prompt to apply
            batch_size: Number of targets dispatched concurrently (>= 1)
            cancellation: Token the caller can use to stop the run
            on_event: Optional progress callback

        Returns:
            RunSummary with one outcome per processed target, in input order

        Raises:
            ValueError: If batch_size < 1
            ConcurrencyViolationError: If another run is active
            NoModelAvailableError: If no model could be selected
        """
        if batch_size < 1:
            raise ValueError(f"Batch size must be at least 1, got {batch_size}")

        token = cancellation or CancellationToken()
        start = time.monotonic()

        with self._claim(token):
            run_id = uuid.uuid4().hex[:12]
            logger.info(
                f"Run {run_id}: {operation.kind.value} '{operation.name}' on {len(targets)} targets "
                f"(batch size {batch_size})"
            )
            self.gateway.set_run_id(run_id)
            try:
                preferred = operation.metadata.models if isinstance(operation, PromptOperation) else ()
                model = await self.gateway.select_model(preferred)
                if not model:
                    raise NoModelAvailableError("No model selected")

                outcomes, stopped = await self._dispatch(targets, operation, batch_size, model, token, on_event)
            finally:
                self.gateway.set_run_id(None)

            summary = RunSummary.from_outcomes(
                outcomes,
                duration_ms=(time.monotonic() - start) * 1000,
                cancelled=stopped,
            )

        self._emit(on_event, RunDoneEvent(summary=summary))
        await self.sink.publish(summary)
        return summary

    async def _dispatch(
        self,
        targets: Sequence[Target],
        operation: Operation,
        batch_size: int,
        model: str,
        token: CancellationToken,
        on_event: EventCallback | None,
    ) -> tuple[list[ItemOutcome], bool]:
        """Run every batch in order. Returns outcomes and whether the run was cancelled."""
        batches = create_batches(targets, batch_size)
        slots: list[ItemOutcome | None] = [None] * len(targets)
        self._emit(on_event, RunStartedEvent(total=len(targets), batch_count=len(batches), model=model))

        processed = 0
        offset = 0
        stopped = False
        for index, batch in enumerate(batches):
            if token.is_cancelled:
                logger.info(f"Run cancelled before batch {index + 1}/{len(batches)}")
                stopped = True
                break

            self._emit(on_event, BatchStartedEvent(index=index, size=len(batch)))
            logger.debug(f"Dispatching batch {index + 1}/{len(batches)} ({len(batch)} items)")

            settled = await asyncio.gather(
                *(self._process_item(target, operation, model) for target in batch),
                return_exceptions=True,
            )

            for i, (target, result) in enumerate(zip(batch, settled, strict=True)):
                if isinstance(result, ItemOutcome):
                    outcome = result
                else:
                    logger.error(f"Unexpected error processing {target.path}", exc_info=result)
                    outcome = ItemOutcome(
                        target=target,
                        success=False,
                        error=str(result) or "Unknown error",
                        model=model,
                    )
                slots[offset + i] = outcome
                processed += 1
                self._emit(
                    on_event,
                    ItemDoneEvent(index=offset + i, processed=processed, total=len(targets), outcome=outcome),
                )
            offset += len(batch)

            if batch_size > 1 and index < len(batches) - 1 and not token.is_cancelled:
                await asyncio.sleep(self.batch_delay)

        return [outcome for outcome in slots if outcome is not None], stopped

    async def _process_item(self, target: Target, operation: Operation, model: str) -> ItemOutcome:
        """Read, resolve, send and record one target. Known failures become outcomes."""
        try:
            content = await self.reader.read(target)
            prompt = templates.resolve(operation, target, content, self.workspace_path)
            request = LLMRequest(
                prompt=prompt,
                model=model,
                temperature=self.generation.temperature,
                max_tokens=self.generation.max_tokens,
            )
            response = await self.gateway.send_request(request)
        except BatchAIError as e:
            logger.warning(f"Failed to process {target.path}: {e}")
            return ItemOutcome(target=target, success=False, error=str(e), model=model)

        outcome = ItemOutcome(
            target=target,
            success=True,
            response=response.content,
            model=response.model or model,
            usage=response.usage,
        )
        await self.sink.record(target, outcome, operation)
        return outcome

    def _emit(self, on_event: EventCallback | None, event: Event) -> None:
        if on_event is None:
            return
        try:
            on_event(event)
        except Exception:
            logger.exception(f"Event callback failed for {event.type.value}")
