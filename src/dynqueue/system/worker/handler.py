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
"""Job handlers perform the work for items popped by a worker."""
from dynqueue.system.logger.log import EventStream


class JobHandler:
    """Base class for job handlers. Subclass it in a plugin module to
    provide custom processing."""
    def __init__(self, logger: EventStream) -> None:
        self._logger = logger

    def get_logger(self) -> EventStream:
        """
        Get the logger.

        Returns:
            EventStream: The logger.
        """
        return self._logger

    def perform(self, queue: str, item: str) -> None:
        """
        Processes an item. Exceptions are reported by the worker and do not
        stop it.

        Args:
            queue (str): The queue the item was popped from.
            item (str): The item.
        """
        raise NotImplementedError()


class LogJobHandler(JobHandler):
    """Reports every item to the event stream."""
    def perform(self, queue: str, item: str) -> None:
        self._logger.log_event(
            "job.perform",
            {
                "name": "job",
                "action": "perform",
                "queue": queue,
                "item": item,
            })
