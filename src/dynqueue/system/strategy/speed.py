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
"""Selects the queue that is the most under-served relative to its declared
speed."""
import math

from dynqueue.system.registry.registry import QueueInfo
from dynqueue.system.strategy.strategy import ScoredPolicy


class ThroughputSpeedPolicy(ScoredPolicy):
    """The score of a queue is its work done divided by the seconds since
    activation times its speed factor. The lowest score is picked. Queues
    without any work have a score of zero so new queues are started
    immediately."""
    @staticmethod
    def name() -> str:
        return "speed"

    def prefer_low(self) -> bool:
        return True

    def compute_score(self, info: QueueInfo, elapsed: float) -> float | None:
        work = info["work"]
        if work is None:
            # retired while reading
            return math.inf
        if work == 0.0:
            return 0.0
        delta = elapsed * info["parameter"]
        if delta <= 0.0:
            return math.inf
        return work / delta

    def units_worked(self, queue: str) -> int:
        """
        The units of work done for an active queue.

        Args:
            queue (str): The queue.

        Returns:
            int: The units of work or 0 if the queue is not active.
        """
        return self._registry.units_worked(queue)
