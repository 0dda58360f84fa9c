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
"""Errors raised when the queue group protocol is violated."""


class ClosedQueueError(RuntimeError):
    """Raised when pushing to a queue that has already been activated into a
    queue group. An activated queue is permanently closed to new items."""
    def __init__(self, queue: str, group: str) -> None:
        super().__init__(
            f"Attempted to push to the activated queue {queue} "
            f"of queue group {group}")
        self.queue = queue
        self.group = group


class QueueGroupNamingError(RuntimeError):
    """Raised when a worker that only processes queue groups is configured
    with a plain queue name."""
    def __init__(self, target: str, marker: str) -> None:
        super().__init__(
            "A group worker requires a queue group instead of a queue. "
            f"The queue group must be prefixed with {marker}, "
            f"as in {marker}mailings, got: {target}")
        self.target = target
