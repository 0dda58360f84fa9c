# Dynqueue schedules workers across dynamically created queue groups.
# Copyright (C) 2024 Josua Krause
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.
"""The worker loop."""
import time
from collections.abc import Callable

import redis as redis_lib

from dynqueue.system.base import WorkerId
from dynqueue.system.error import ClosedQueueError
from dynqueue.system.logger.context import add_context
from dynqueue.system.logger.log import EventStream
from dynqueue.system.scheduler import SchedulingQueueStore
from dynqueue.system.worker.handler import JobHandler
from dynqueue.system.worker.resolver import QueueResolver


DEFAULT_MISS_RETRIES = 3
"""How often a group worker selects again after all selected queues turned
out to be empty."""
DEFAULT_CONNECTION_SLEEP = 60.0
"""Seconds to wait after the store could not be reached."""


class Worker:
    """Repeatedly resolves its target, pops an item, and hands it to a job
    handler."""
    def __init__(
            self,
            scheduler: SchedulingQueueStore,
            resolver: QueueResolver,
            handler: JobHandler,
            logger: EventStream,
            *,
            own_id: WorkerId | None = None,
            miss_retries: int = DEFAULT_MISS_RETRIES,
            connection_sleep: float = DEFAULT_CONNECTION_SLEEP) -> None:
        """
        Creates a worker.

        Args:
            scheduler (SchedulingQueueStore): The scheduler.
            resolver (QueueResolver): Resolves the target of the worker.
            handler (JobHandler): Processes the items.
            logger (EventStream): The logger.
            own_id (WorkerId | None, optional): The id of the worker. A new id
                is created if None. Defaults to None.
            miss_retries (int, optional): How often a group worker selects
                again if all selected queues were empty. Defaults to
                `DEFAULT_MISS_RETRIES`.
            connection_sleep (float, optional): Seconds to wait after a
                connection error. Defaults to `DEFAULT_CONNECTION_SLEEP`.
        """
        if miss_retries < 0:
            raise ValueError(f"invalid miss retries: {miss_retries}")
        self._scheduler = scheduler
        self._resolver = resolver
        self._handler = handler
        self._logger = logger
        self._own_id = WorkerId.create() if own_id is None else own_id
        self._miss_retries = miss_retries
        self._connection_sleep = connection_sleep
        self._paused = False
        self._done = False
        self._processed = 0

    def get_own_id(self) -> WorkerId:
        """
        The id of the worker.

        Returns:
            WorkerId: The id.
        """
        return self._own_id

    def get_resolver(self) -> QueueResolver:
        """
        The resolver of the worker target.

        Returns:
            QueueResolver: The resolver.
        """
        return self._resolver

    def get_processed(self) -> int:
        """
        The number of items processed so far.

        Returns:
            int: The number of items.
        """
        return self._processed

    def is_paused(self) -> bool:
        """
        Whether the worker currently skips processing.

        Returns:
            bool: True, if the worker is paused.
        """
        return self._paused

    def is_done(self) -> bool:
        """
        Whether the worker has been shut down.

        Returns:
            bool: True, if the worker loop terminates at its next iteration.
        """
        return self._done

    def _log_action(
            self,
            name: str,
            action: str,
            **kwargs: int) -> None:
        self._logger.log_event(
            name,
            {
                "name": "worker",
                "action": action,  # type: ignore[typeddict-item]
                "target": self._resolver.get_target(),
                **kwargs,  # type: ignore[typeddict-item]
            })

    def pause_processing(self) -> None:
        """Stops popping items. A paused worker with a positive interval keeps
        polling for being unpaused. Otherwise the loop ends."""
        self._paused = True
        self._log_action("tally.worker.pause", "pause")

    def unpause_processing(self) -> None:
        """Resumes popping items."""
        self._paused = False
        self._log_action("tally.worker.unpause", "unpause")

    def shutdown(self) -> None:
        """Ends the worker loop after the current item."""
        self._done = True

    def reserve(self) -> tuple[str, str] | None:
        """
        Pops the next item. An empty queue is not an error. For group targets
        the selection is repeated a bounded number of times since another
        worker might have drained the selected queues in the meantime.

        Returns:
            tuple[str, str] | None: The queue and the item or None if no work
                is available right now.
        """
        scheduler = self._scheduler
        resolver = self._resolver
        attempts = 1 + (self._miss_retries if resolver.is_group() else 0)
        for _ in range(attempts):
            queues = resolver.queues()
            if not queues:
                return None
            for queue in queues:
                item = scheduler.pop(queue)
                if item is not None:
                    return queue, item
                self._logger.log_event(
                    "debug.queue.miss",
                    {
                        "name": "queue",
                        "action": "miss",
                        "queue": queue,
                        "group": resolver.get_group(),
                    })
        return None

    def process(self, queue: str, item: str) -> None:
        """
        Counts the work for the queue and hands the item to the job handler.
        Errors of the handler are reported but not raised.

        Args:
            queue (str): The queue the item was popped from.
            item (str): The item.
        """
        logger = self._logger
        self._scheduler.get_registry().increment_work(queue)
        with add_context({"queue": queue}):
            logger.log_event(
                "debug.job.start",
                {
                    "name": "job",
                    "action": "start",
                    "queue": queue,
                })
            try:
                self._handler.perform(queue, item)
            except (ConnectionError, redis_lib.ConnectionError):
                raise
            except ClosedQueueError:
                logger.log_error("error.job", "closed_queue")
            except Exception:  # pylint: disable=broad-exception-caught
                logger.log_error("error.job", "general_exception")
            self._processed += 1
            logger.log_event(
                "debug.job.done",
                {
                    "name": "job",
                    "action": "done",
                    "queue": queue,
                })

    def work_once(self) -> bool:
        """
        Processes at most one item.

        Returns:
            bool: Whether an item was processed.
        """
        job = self.reserve()
        if job is None:
            return False
        queue, item = job
        self.process(queue, item)
        return True

    def work(
            self,
            interval: float = 0.0,
            on_job: Callable[['Worker'], None] | None = None) -> int:
        """
        Runs the worker loop.

        Args:
            interval (float, optional): Seconds to wait when no work is
                available. If the interval is not positive the loop ends as
                soon as no work is available or the worker is paused.
                Defaults to 0.0.
            on_job (Callable[[Worker], None] | None, optional): Called after
                every processed item. Defaults to None.

        Returns:
            int: The number of items processed during this call.
        """
        logger = self._logger
        start_count = self._processed
        with add_context({
                "worker": self._own_id,
                "group": self._resolver.get_group(),
                }):
            self._log_action("tally.worker.start", "start")
            try:
                while not self._done:
                    if self._paused:
                        if interval <= 0.0:
                            break
                        time.sleep(interval)
                        continue
                    try:
                        found = self.work_once()
                    except (ConnectionError, redis_lib.ConnectionError):
                        logger.log_error("error.worker", "connection")
                        time.sleep(self._connection_sleep)
                        continue
                    if found:
                        if on_job is not None:
                            on_job(self)
                        continue
                    if interval <= 0.0:
                        break
                    time.sleep(interval)
            except Exception:
                logger.log_error("error.worker", "uncaught_worker")
                raise
            finally:
                self._log_action(
                    "tally.worker.stop",
                    "stop",
                    processed=self._processed - start_count)
        return self._processed - start_count
