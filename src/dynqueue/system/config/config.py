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
"""The configuration connects different modules together and serves as
external API."""
from typing import TypedDict, TypeVar

from dynqueue.system.base import (
    DEFAULT_GROUP_MARKER,
    L_EITHER,
    Locality,
    Module,
)
from dynqueue.system.logger.log import EventStream
from dynqueue.system.registry.registry import NEUTRAL_PARAMETER, QueueRegistry
from dynqueue.system.scheduler import (
    DEFAULT_NUMBER_OF_QUEUES,
    SchedulingQueueStore,
)
from dynqueue.system.store.store import QueueStore
from dynqueue.system.strategy.strategy import SelectionPolicy
from dynqueue.system.worker.handler import JobHandler
from dynqueue.system.worker.resolver import QueueResolver
from dynqueue.system.worker.worker import (
    DEFAULT_CONNECTION_SLEEP,
    DEFAULT_MISS_RETRIES,
    Worker,
)


ModuleT = TypeVar('ModuleT', bound=Module)
"""A module type."""


QueueSummary = TypedDict('QueueSummary', {
    "queue": str,
    "parameter": float | None,
    "work": int,
    "length": int,
})
"""The state of an active queue."""


GroupInfo = TypedDict('GroupInfo', {
    "group": str,
    "queues": list[QueueSummary],
    "fresh": int,
})
"""The state of a queue group. `fresh` is the number of entries of queues
that have never been selected."""


class Config:
    """Configurations connect different modules together and ensure their
    compatibility."""
    def __init__(self) -> None:
        """
        Create an empty configuration.
        """
        self._locality: Locality = L_EITHER
        self._logger: EventStream | None = None
        self._store: QueueStore | None = None
        self._registry: QueueRegistry | None = None
        self._policy: SelectionPolicy | None = None
        self._scheduler: SchedulingQueueStore | None = None
        self._number_of_queues = DEFAULT_NUMBER_OF_QUEUES
        self._group_marker = DEFAULT_GROUP_MARKER
        self._handler: JobHandler | None = None
        self._miss_retries = DEFAULT_MISS_RETRIES
        self._connection_sleep = DEFAULT_CONNECTION_SLEEP

    def _update_locality(self, module: ModuleT) -> ModuleT:
        locality = module.locality()
        if self._locality == L_EITHER:
            self._locality = locality
        elif locality == L_EITHER:
            pass
        elif self._locality != locality:
            raise ValueError("trying to load both local and remote modules")
        return module

    def get_locality(self) -> Locality:
        """
        The locality of all loaded modules.

        Returns:
            Locality: Whether workers can be run in different processes.
        """
        return self._locality

    def set_logger(self, logger: EventStream) -> None:
        """
        Set the logger.

        Args:
            logger (EventStream): The logger.

        Raises:
            ValueError: If the logger is already set.
        """
        if self._logger is not None:
            raise ValueError("logger already initialized")
        self._logger = logger

    def get_logger(self) -> EventStream:
        """
        Get the logger.

        Raises:
            ValueError: If no logger is set.

        Returns:
            EventStream: The logger.
        """
        if self._logger is None:
            raise ValueError("logger not initialized")
        return self._logger

    def set_store(self, store: QueueStore) -> None:
        """
        Set the queue store.

        Args:
            store (QueueStore): The queue store.

        Raises:
            ValueError: If the store is already set.
        """
        if self._store is not None:
            raise ValueError("queue store already initialized")
        self._store = self._update_locality(store)

    def get_store(self) -> QueueStore:
        """
        Get the queue store.

        Raises:
            ValueError: If no store is set.

        Returns:
            QueueStore: The queue store.
        """
        if self._store is None:
            raise ValueError("queue store not initialized")
        return self._store

    def set_registry(self, registry: QueueRegistry) -> None:
        """
        Set the queue registry.

        Args:
            registry (QueueRegistry): The registry of active queues.

        Raises:
            ValueError: If the registry is already set.
        """
        if self._registry is not None:
            raise ValueError("queue registry already initialized")
        self._registry = self._update_locality(registry)

    def get_registry(self) -> QueueRegistry:
        """
        Get the queue registry.

        Raises:
            ValueError: If no registry is set.

        Returns:
            QueueRegistry: The registry of active queues.
        """
        if self._registry is None:
            raise ValueError("queue registry not initialized")
        return self._registry

    def set_policy(self, policy: SelectionPolicy) -> None:
        """
        Set the selection policy.

        Args:
            policy (SelectionPolicy): The policy.

        Raises:
            ValueError: If the policy is already set.
        """
        if self._policy is not None:
            raise ValueError("selection policy already initialized")
        self._policy = policy

    def get_policy(self) -> SelectionPolicy:
        """
        Get the selection policy.

        Raises:
            ValueError: If no policy is set.

        Returns:
            SelectionPolicy: The policy.
        """
        if self._policy is None:
            raise ValueError("selection policy not initialized")
        return self._policy

    def set_scheduler_settings(
            self,
            *,
            number_of_queues: int,
            group_marker: str) -> None:
        """
        Set how worker targets are resolved.

        Args:
            number_of_queues (int): How many queues a group reference
                resolves to.
            group_marker (str): The prefix of group references.

        Raises:
            ValueError: If the scheduler is already in use.
        """
        if self._scheduler is not None:
            raise ValueError("scheduler already initialized")
        self._number_of_queues = number_of_queues
        self._group_marker = group_marker

    def get_scheduler(self) -> SchedulingQueueStore:
        """
        Get the scheduler. It is created on first use.

        Raises:
            ValueError: If a required module is not set.

        Returns:
            SchedulingQueueStore: The scheduler.
        """
        if self._scheduler is None:
            self._scheduler = SchedulingQueueStore(
                self.get_store(),
                self.get_registry(),
                self.get_policy(),
                self.get_logger(),
                number_of_queues=self._number_of_queues,
                group_marker=self._group_marker)
        return self._scheduler

    def set_job_handler(self, handler: JobHandler) -> None:
        """
        Set the default job handler of workers.

        Args:
            handler (JobHandler): The job handler.

        Raises:
            ValueError: If the handler is already set.
        """
        if self._handler is not None:
            raise ValueError("job handler already initialized")
        self._handler = handler

    def get_job_handler(self) -> JobHandler:
        """
        Get the default job handler of workers.

        Raises:
            ValueError: If no handler is set.

        Returns:
            JobHandler: The job handler.
        """
        if self._handler is None:
            raise ValueError("job handler not initialized")
        return self._handler

    def set_worker_settings(
            self,
            *,
            miss_retries: int,
            connection_sleep: float) -> None:
        """
        Set the defaults for workers.

        Args:
            miss_retries (int): How often a group worker selects again if all
                selected queues were empty.
            connection_sleep (float): Seconds to wait after a connection
                error.
        """
        self._miss_retries = miss_retries
        self._connection_sleep = connection_sleep

    def activate(
            self,
            group: str,
            queue: str,
            parameter: float = NEUTRAL_PARAMETER) -> None:
        """
        Activates a queue in a queue group.

        Args:
            group (str): The queue group.
            queue (str): The queue.
            parameter (float, optional): The policy parameter. Defaults to
                `NEUTRAL_PARAMETER`.
        """
        self.get_scheduler().activate(group, queue, parameter)

    def push(self, queue: str, item: str) -> None:
        """
        Pushes an item to a queue that is not active yet.

        Args:
            queue (str): The queue.
            item (str): The item.
        """
        self.get_scheduler().push(queue, item)

    def pop(self, queue: str) -> str | None:
        """
        Pops an item from a queue.

        Args:
            queue (str): The queue.

        Returns:
            str | None: The item or None if the queue is empty.
        """
        return self.get_scheduler().pop(queue)

    def create_worker(
            self,
            target: str,
            *,
            require_group: bool = False,
            handler: JobHandler | None = None) -> Worker:
        """
        Creates a worker for the given target.

        Args:
            target (str): A queue name or a group reference.
            require_group (bool, optional): Whether the target must be a group
                reference. Defaults to False.
            handler (JobHandler | None, optional): Overrides the configured
                job handler. Defaults to None.

        Raises:
            QueueGroupNamingError: If a group reference is required but the
                target is a plain queue name.

        Returns:
            Worker: The worker.
        """
        scheduler = self.get_scheduler()
        resolver = QueueResolver(
            scheduler, target, require_group=require_group)
        return Worker(
            scheduler,
            resolver,
            self.get_job_handler() if handler is None else handler,
            self.get_logger(),
            miss_retries=self._miss_retries,
            connection_sleep=self._connection_sleep)

    def group_info(self, group: str) -> GroupInfo:
        """
        Reports the state of a queue group.

        Args:
            group (str): The queue group.

        Returns:
            GroupInfo: The active queues and their counters.
        """
        registry = self.get_registry()
        store = self.get_store()
        queues: list[QueueSummary] = [
            {
                "queue": queue,
                "parameter": registry.parameter(group, queue),
                "work": registry.units_worked(queue),
                "length": store.length(queue),
            }
            for queue in registry.members(group)
        ]
        return {
            "group": group,
            "queues": queues,
            "fresh": registry.fresh_count(group),
        }
