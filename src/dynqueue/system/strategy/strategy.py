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
"""Defines the selection policy interfaces."""
from dynqueue.system.logger.log import EventStream
from dynqueue.system.registry.registry import QueueInfo, QueueRegistry


class SelectionPolicy:
    """A selection policy picks queues from the active queues of a queue
    group. Policies never block. An empty result means there is no work right
    now."""
    def __init__(self, registry: QueueRegistry, logger: EventStream) -> None:
        """
        Creates a selection policy.

        Args:
            registry (QueueRegistry): The registry of active queues.
            logger (EventStream): The logger.
        """
        self._registry = registry
        self._logger = logger

    @staticmethod
    def name() -> str:
        """
        The name of the policy as used in log events.

        Returns:
            str: The name.
        """
        raise NotImplementedError()

    def get_registry(self) -> QueueRegistry:
        """
        Get the registry.

        Returns:
            QueueRegistry: The registry of active queues.
        """
        return self._registry

    def get_logger(self) -> EventStream:
        """
        Get the logger.

        Returns:
            EventStream: The logger.
        """
        return self._logger

    def pick(self, group: str) -> str | None:
        """
        Picks the queue to process next.

        Args:
            group (str): The queue group.

        Returns:
            str | None: The queue or None if the group has no active queues.
        """
        raise NotImplementedError()

    def pick_n(self, group: str, count: int) -> list[str]:
        """
        Picks up to `count` distinct queues. Returning more than one queue
        reduces the chance that all returned queues got drained by another
        worker in the meantime.

        Args:
            group (str): The queue group.
            count (int): The maximum number of queues.

        Returns:
            list[str]: The queues in order of preference. The list might be
                shorter than requested if the group is small.
        """
        res: list[str] = []
        for _ in range(count):
            queue = self.pick(group)
            if queue is not None and queue not in res:
                res.append(queue)
        return res


class ScoredPolicy(SelectionPolicy):
    """A policy that computes a score for every active queue of a group on
    every selection. Ties are broken by queue name."""
    def prefer_low(self) -> bool:
        """
        Whether queues with lower scores are preferred.

        Returns:
            bool: True, if the queue with the lowest score is picked. False,
                if the queue with the highest score is picked.
        """
        raise NotImplementedError()

    def compute_score(self, info: QueueInfo, elapsed: float) -> float | None:
        """
        Computes the score of a queue.

        Args:
            info (QueueInfo): The metadata of the queue.
            elapsed (float): The number of seconds since the queue got
                activated.

        Returns:
            float | None: The score or None if the queue should not be
                considered.
        """
        raise NotImplementedError()

    def compute_scores(self, group: str) -> dict[str, float]:
        """
        Computes the scores of all active queues of a group from the live
        counters. The result is never stored.

        Args:
            group (str): The queue group.

        Returns:
            dict[str, float]: The score of every active queue in sorted order
                of the queue names.
        """
        registry = self._registry
        snapshot = registry.snapshot(group)
        if not snapshot:
            return {}
        now = registry.now()
        res: dict[str, float] = {}
        for queue, info in snapshot.items():
            started = info["started"]
            if started is None:
                continue
            score = self.compute_score(info, now - started)
            if score is None:
                continue
            res[queue] = score
        return res

    def pick(self, group: str) -> str | None:
        res = self.pick_n(group, 1)
        if not res:
            return None
        return res[0]

    def pick_n(self, group: str, count: int) -> list[str]:
        scores = self.compute_scores(group)
        ordered = sorted(
            scores.keys(),
            key=lambda queue: scores[queue],
            reverse=not self.prefer_low())
        res = ordered[:count]
        self._logger.log_lazy(
            f"select.{self.name()}",
            lambda: {
                "name": "select",
                "group": group,
                "policy": self.name(),
                "queues": res,
                "phase": "score",
            },
            adjust_ctx={"group": group})
        return res
