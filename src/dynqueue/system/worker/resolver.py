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
"""Resolves the configured target of a worker into concrete queues."""
from dynqueue.system.base import group_from_ref
from dynqueue.system.error import QueueGroupNamingError
from dynqueue.system.scheduler import SchedulingQueueStore


class QueueResolver:
    """Turns a worker target into the queues to pop from on every
    iteration of the worker loop."""
    def __init__(
            self,
            scheduler: SchedulingQueueStore,
            target: str,
            *,
            require_group: bool = False) -> None:
        """
        Creates a resolver for a worker target.

        Args:
            scheduler (SchedulingQueueStore): The scheduler.
            target (str): A queue name or a group reference.
            require_group (bool, optional): Whether the target must be a group
                reference. Defaults to False.

        Raises:
            QueueGroupNamingError: If a group reference is required but the
                target is a plain queue name.
            ValueError: If the target is empty.
        """
        if not target:
            raise ValueError("worker target must not be empty")
        self._is_group = scheduler.is_group_ref(target)
        if require_group and not self._is_group:
            raise QueueGroupNamingError(target, scheduler.get_group_marker())
        self._scheduler = scheduler
        self._target = target

    def get_target(self) -> str:
        """
        The worker target.

        Returns:
            str: The queue name or group reference.
        """
        return self._target

    def is_group(self) -> bool:
        """
        Whether the target refers to a queue group.

        Returns:
            bool: True, if the target is a group reference.
        """
        return self._is_group

    def get_group(self) -> str | None:
        """
        The group of the target.

        Returns:
            str | None: The group name or None if the target is a plain queue.
        """
        if not self._is_group:
            return None
        return group_from_ref(self._target, self._scheduler.get_group_marker())

    def queues(self) -> list[str]:
        """
        Resolves the target.

        Returns:
            list[str]: The queues to pop from in order of preference.
        """
        return self._scheduler.resolve(self._target)
