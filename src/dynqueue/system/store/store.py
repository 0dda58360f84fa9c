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
"""Defines the queue store interface."""
from dynqueue.system.base import Locality, Module


class QueueStore(Module):
    """A queue store keeps a FIFO list of opaque items for every queue and
    tracks which queues are known."""
    def locality(self) -> Locality:  # type: ignore[override]
        raise NotImplementedError()

    def push(self, queue: str, item: str) -> None:
        """
        Appends an item to the end of the queue. The queue becomes known if it
        wasn't already.

        Args:
            queue (str): The queue.
            item (str): The item.
        """
        raise NotImplementedError()

    def pop(self, queue: str) -> str | None:
        """
        Removes the first item of the queue.

        Args:
            queue (str): The queue.

        Returns:
            str | None: The item or None if the queue is empty or doesn't
                exist.
        """
        raise NotImplementedError()

    def length(self, queue: str) -> int:
        """
        The number of items in the queue.

        Args:
            queue (str): The queue.

        Returns:
            int: The number of items. Unknown queues have length 0.
        """
        raise NotImplementedError()

    def remove_queue(self, queue: str) -> None:
        """
        Removes the queue and all of its items. Removing an unknown queue has
        no effect.

        Args:
            queue (str): The queue.
        """
        raise NotImplementedError()

    def queues(self) -> list[str]:
        """
        All known queues.

        Returns:
            list[str]: The queue names in sorted order.
        """
        raise NotImplementedError()

    def queue_exists(self, queue: str) -> bool:
        """
        Whether the queue is known.

        Args:
            queue (str): The queue.

        Returns:
            bool: True, if items have been pushed to the queue and the queue
                has not been removed since.
        """
        raise NotImplementedError()
