"""Dispatch of inbound messages to per-event workflows."""

from __future__ import annotations

import asyncio

from firebisect.core.config import State
from firebisect.core.errors import CatalogError, TransportError
from firebisect.core.log import logger
from firebisect.search.models import InboundEvent, OutwardEvent, Verdict
from firebisect.transport.base import Transport
from firebisect.transport.parsing import parse_event
from firebisect.workflow.graph import create_workflow, start_node


class Dispatcher:
    """Runs one workflow per inbound event.

    Events of different conversations run as concurrent tasks (unless
    concurrent is False). Events of one conversation are serialized by
    the registry guard, held for the whole workflow including its I/O.

    Collaborator failures are logged and the event is dropped. Any
    other exception, a ContractViolation in particular, stops run().
    """

    def __init__(self, state: State, concurrent: bool = True):
        self.state = state
        self.concurrent = concurrent
        self.workflow = create_workflow()
        self._tasks: set[asyncio.Task] = set()
        self._failure: BaseException | None = None
        self._consumer: asyncio.Task | None = None

    async def run(self, transport: Transport | None = None) -> None:
        """Consume the transport's messages until it is exhausted.

        A crashed event interrupts the wait for the next message, even
        on an idle transport. In-flight events are then finished and
        the crash is re-raised.
        """
        transport = transport or self.state.runtime.search.transport
        self._consumer = asyncio.current_task()
        try:
            async for message in transport.messages():
                event = parse_event(message)
                if event is None:
                    logger.spew(
                        "Message ignored",
                        conversation=message.conversation_id,
                    )
                    continue

                if self.concurrent:
                    task = asyncio.create_task(self.handle(event))
                    self._tasks.add(task)
                    task.add_done_callback(self._task_done)
                else:
                    await self.handle(event)
        except asyncio.CancelledError:
            if self._failure is None:
                raise
            # Cancelled by _task_done, not from outside
            self._consumer.uncancel()
        finally:
            # No cancellation while draining, so in-flight events finish
            self._consumer = None
            await self.drain()
        self._raise_failure()

    async def handle(self, event: InboundEvent) -> OutwardEvent | None:
        """Run the workflow for one event.

        Returns:
            The outward event produced, or None when the event was
            ignored or a collaborator failed
        """
        search = self.state.runtime.search
        async with search.registry.guard(event.conversation_id):
            if (isinstance(event, Verdict)
                    and search.registry.lookup(event.conversation_id) is None):
                logger.debug(
                    "Verdict without active search",
                    conversation=event.conversation_id,
                )
                return None

            try:
                result = await self.workflow.run(
                    start_node(event), state=self.state
                )
            except (CatalogError, TransportError) as e:
                logger.error(
                    "Event dropped after collaborator failure",
                    conversation=event.conversation_id,
                    event=type(event).__name__,
                    error=str(e),
                )
                return None

            search.events_handled += 1
            return result.output

    async def drain(self) -> None:
        """Wait for every in-flight event to finish."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Event handling crashed", error=repr(exc))
            if self._failure is None:
                self._failure = exc
                if self._consumer is not None:
                    self._consumer.cancel()

    def _raise_failure(self) -> None:
        if self._failure is not None:
            raise self._failure
