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
"""Selects queues by their accumulated throughput."""
from typing import Literal

from dynqueue.system.logger.log import EventStream
from dynqueue.system.registry.registry import QueueInfo, QueueRegistry
from dynqueue.system.strategy.strategy import ScoredPolicy


Direction = Literal["max", "min"]
"""Whether the highest or the lowest scoring queue is picked."""
DIR_MAX: Direction = "max"
"""Pick the queue making the fastest progress to keep it busy."""
DIR_MIN: Direction = "min"
"""Pick the queue that received the least work relative to its age."""


class PriorityScorePolicy(ScoredPolicy):
    """The score of a queue is its work done per second since activation. The
    elapsed time is clamped to at least one second. The direction decides
    whether the highest or the lowest score wins and must be the same for
    all workers of a deployment."""
    def __init__(
            self,
            registry: QueueRegistry,
            logger: EventStream,
            *,
            direction: Direction = DIR_MAX) -> None:
        super().__init__(registry, logger)
        if direction not in (DIR_MAX, DIR_MIN):
            raise ValueError(f"invalid direction: {direction}")
        self._direction = direction

    @staticmethod
    def name() -> str:
        return "priority"

    def get_direction(self) -> Direction:
        """
        The configured direction.

        Returns:
            Direction: Whether the highest or the lowest score wins.
        """
        return self._direction

    def prefer_low(self) -> bool:
        return self._direction == DIR_MIN

    def compute_score(self, info: QueueInfo, elapsed: float) -> float | None:
        work = info["work"]
        if work is None:
            return None
        return work / max(1.0, elapsed)
