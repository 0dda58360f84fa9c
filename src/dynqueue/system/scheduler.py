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
"""A queue store that schedules workers across queue groups."""
from dynqueue.system.base import (
    DEFAULT_GROUP_MARKER,
    group_from_ref,
    is_group_ref,
    L_EITHER,
    Locality,
    Module,
    validate_name,
)
from dynqueue.system.error import ClosedQueueError
from dynqueue.system.logger.log import EventStream
from dynqueue.system.registry.registry import NEUTRAL_PARAMETER, QueueRegistry
from dynqueue.system.store.store import QueueStore
from dynqueue.system.strategy.strategy import SelectionPolicy


DEFAULT_NUMBER_OF_QUEUES = 1
"""The number of queues a group reference resolves to by default."""


class SchedulingQueueStore(Module):
    """Wraps a queue store so that activated queues are closed for pushing
    and drained queues are retired automatically. Workers resolve their
    target through the scheduler to obtain the queues to pop from."""
    def __init__(
            self,
            store: QueueStore,
            registry: QueueRegistry,
            policy: SelectionPolicy,
            logger: EventStream,
            *,
            number_of_queues: int = DEFAULT_NUMBER_OF_QUEUES,
            group_marker: str = DEFAULT_GROUP_MARKER) -> None:
        """
        Creates a scheduling queue store.

        Args:
            store (QueueStore): The underlying queue store.
            registry (QueueRegistry): The registry of active queues.
            policy (SelectionPolicy): The selection policy.
            logger (EventStream): The logger.
            number_of_queues (int, optional): How many queues a group
                reference resolves to. Defaults to `DEFAULT_NUMBER_OF_QUEUES`.
            group_marker (str, optional): The prefix that marks group
                references. Defaults to `DEFAULT_GROUP_MARKER`.

        Raises:
            ValueError: If a setting is invalid.
        """
        if number_of_queues < 1:
            raise ValueError(f"invalid number of queues: {number_of_queues}")
        if not group_marker:
            raise ValueError("group marker must not be empty")
        self._store = store
        self._registry = registry
        self._policy = policy
        self._logger = logger
        self._number_of_queues = number_of_queues
        self._group_marker = group_marker

    def locality(self) -> Locality:  # type: ignore[override]
        store_loc = self._store.locality()
        if store_loc != L_EITHER:
            return store_loc
        return self._registry.locality()

    def get_store(self) -> QueueStore:
        """
        Get the underlying queue store.

        Returns:
            QueueStore: The queue store.
        """
        return self._store

    def get_registry(self) -> QueueRegistry:
        """
        Get the registry of active queues.

        Returns:
            QueueRegistry: The registry.
        """
        return self._registry

    def get_policy(self) -> SelectionPolicy:
        """
        Get the selection policy.

        Returns:
            SelectionPolicy: The policy.
        """
        return self._policy

    def get_logger(self) -> EventStream:
        """
        Get the logger.

        Returns:
            EventStream: The logger.
        """
        return self._logger

    def get_group_marker(self) -> str:
        """
        Get the group marker.

        Returns:
            str: The prefix that marks group references.
        """
        return self._group_marker

    def get_number_of_queues(self) -> int:
        """
        Get the number of queues a group reference resolves to.

        Returns:
            int: The number of queues.
        """
        return self._number_of_queues

    def activate(
            self,
            group: str,
            queue: str,
            parameter: float = NEUTRAL_PARAMETER) -> None:
        """
        Activates a queue in a queue group. The queue should contain all its
        items at this point. After activation no more items can be pushed.

        Args:
            group (str): The queue group.
            queue (str): The queue.
            parameter (float, optional): The policy parameter. Defaults to
                `NEUTRAL_PARAMETER`.

        Raises:
            ValueError: If a name or the parameter is invalid or if the queue
                is active in a different group. Names must not start with
                the group marker.
        """
        validate_name("group", group, self._group_marker)
        validate_name("queue", queue, self._group_marker)
        self._registry.activate(group, queue, parameter)
        self._logger.log_event(
            "queue.activate",
            {
                "name": "queue",
                "action": "activate",
                "queue": queue,
                "group": group,
                "parameter": parameter,
            },
            adjust_ctx={"group": group, "queue": queue})

    def push(self, queue: str, item: str) -> None:
        """
        Pushes an item to a queue.

        Args:
            queue (str): The queue.
            item (str): The item.

        Raises:
            ClosedQueueError: If the queue has been activated already.
        """
        group = self._registry.group_of(queue)
        if group is not None:
            raise ClosedQueueError(queue, group)
        self._store.push(queue, item)

    def pop(self, queue: str) -> str | None:
        """
        Pops the next item of a queue. If the queue is active and becomes
        empty it gets retired and removed.

        Args:
            queue (str): The queue.

        Returns:
            str | None: The item or None if the queue was empty.
        """
        res = self._store.pop(queue)
        if self._store.length(queue) == 0:
            group = self._registry.group_of(queue)
            if group is not None:
                self._retire(queue, group)
        return res

    def _retire(self, queue: str, group: str | None) -> None:
        if self._registry.retire(queue):
            self._logger.log_event(
                "queue.retire",
                {
                    "name": "queue",
                    "action": "retire",
                    "queue": queue,
                    "group": group,
                },
                adjust_ctx={"group": group, "queue": queue})
        self._store.remove_queue(queue)

    def remove_queue(self, queue: str) -> None:
        """
        Removes a queue, retiring it first if it is active.

        Args:
            queue (str): The queue.
        """
        self._retire(queue, self._registry.group_of(queue))

    def length(self, queue: str) -> int:
        """
        The number of items in a queue.

        Args:
            queue (str): The queue.

        Returns:
            int: The number of items.
        """
        return self._store.length(queue)

    def queues(self) -> list[str]:
        """
        All known queues.

        Returns:
            list[str]: The queue names in sorted order.
        """
        return self._store.queues()

    def queue_exists(self, queue: str) -> bool:
        """
        Whether the queue is known to the store.

        Args:
            queue (str): The queue.

        Returns:
            bool: True, if the queue has items or has not been removed.
        """
        return self._store.queue_exists(queue)

    def is_group_ref(self, target: str) -> bool:
        """
        Whether a worker target refers to a queue group.

        Args:
            target (str): The worker target.

        Returns:
            bool: True, if the target starts with the group marker.
        """
        return is_group_ref(target, self._group_marker)

    def resolve(self, target: str) -> list[str]:
        """
        Resolves a worker target into concrete queues. A plain queue name
        resolves to itself. A group reference resolves to the queues picked
        by the selection policy.

        Args:
            target (str): The worker target.

        Returns:
            list[str]: The queues to pop from in order of preference. The
                list is empty if the group has no active queues.
        """
        if not self.is_group_ref(target):
            return [target]
        group = group_from_ref(target, self._group_marker)
        return self._policy.pick_n(group, self._number_of_queues)
