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
"""Selects queues randomly, weighted by their selection probability. Newly
activated queues can be given a head start."""
import random

from dynqueue.system.logger.log import EventStream
from dynqueue.system.registry.registry import QueueRegistry
from dynqueue.system.strategy.strategy import SelectionPolicy


DEFAULT_RANDOM_ATTEMPTS = 20
"""Number of weighted draws before giving up and using the last draw. Higher
numbers model the probabilities more accurately at the cost of an occasional
burst of store round-trips. The value should depend on the lowest probability
in the system."""
DEFAULT_QUICK_START_FACTOR = 0.5
"""How much brand new queues are preferred. With 1.0 the next pick is always
a new queue if one exists. With 0.0 new queues are not preferred at all."""


class WeightedRandomPolicy(SelectionPolicy):
    """Picks queues in two phases. First, with the quick start probability,
    the oldest queue that has never been picked is used. Otherwise, queues
    are drawn uniformly and accepted with their selection probability."""
    def __init__(
            self,
            registry: QueueRegistry,
            logger: EventStream,
            *,
            random_attempts: int = DEFAULT_RANDOM_ATTEMPTS,
            quick_start_factor: float = DEFAULT_QUICK_START_FACTOR,
            seed: int | None = None) -> None:
        """
        Creates a weighted random policy.

        Args:
            registry (QueueRegistry): The registry of active queues.
            logger (EventStream): The logger.
            random_attempts (int, optional): The maximum number of draws in
                the weighted phase. Defaults to `DEFAULT_RANDOM_ATTEMPTS`.
            quick_start_factor (float, optional): The probability of trying
                new queues first. Defaults to `DEFAULT_QUICK_START_FACTOR`.
            seed (int | None, optional): Seeds the random source. Defaults to
                None.

        Raises:
            ValueError: If a setting is out of range.
        """
        super().__init__(registry, logger)
        if random_attempts < 1:
            raise ValueError(f"invalid random attempts: {random_attempts}")
        if not 0.0 <= quick_start_factor <= 1.0:
            raise ValueError(
                f"quick start factor must be in [0, 1]: {quick_start_factor}")
        self._random_attempts = random_attempts
        self._quick_start_factor = quick_start_factor
        self._rng = random.Random(seed)

    @staticmethod
    def name() -> str:
        return "weighted"

    def get_random_attempts(self) -> int:
        """
        The maximum number of draws in the weighted phase.

        Returns:
            int: The number of draws.
        """
        return self._random_attempts

    def get_quick_start_factor(self) -> float:
        """
        The probability of trying new queues first.

        Returns:
            float: The probability.
        """
        return self._quick_start_factor

    def _log_pick(
            self,
            group: str,
            queue: str,
            *,
            quick_start: bool,
            attempts: int) -> None:
        self._logger.log_lazy(
            "debug.select.weighted",
            lambda: {
                "name": "select",
                "group": group,
                "policy": self.name(),
                "queues": [queue],
                "phase": "quick_start" if quick_start else "weighted",
                "attempts": attempts,
            },
            adjust_ctx={"group": group})

    def pick_fresh(self, group: str) -> str | None:
        """
        Picks the oldest queue of the group that has never been picked.
        Entries of queues that have been retired in the meantime are
        discarded.

        Args:
            group (str): The queue group.

        Returns:
            str | None: The queue or None if no fresh queue exists.
        """
        registry = self._registry
        attempts = 0
        while True:
            queue = registry.pop_fresh(group)
            if queue is None:
                return None
            attempts += 1
            if registry.group_of(queue) == group:
                self._log_pick(
                    group, queue, quick_start=True, attempts=attempts)
                return queue

    def pick_weighted(self, group: str) -> str | None:
        """
        Draws active queues uniformly and accepts a draw with its selection
        probability. If no draw is accepted within the attempt budget the
        last draw is used.

        Args:
            group (str): The queue group.

        Returns:
            str | None: The queue or None if the group has no active queues.
        """
        registry = self._registry
        members = registry.members(group)
        if not members:
            return None
        rng = self._rng
        queue = members[0]
        attempts = 0
        accepted = False
        while attempts < self._random_attempts:
            queue = rng.choice(members)
            attempts += 1
            probability = registry.parameter(group, queue)
            if probability is not None and rng.random() < probability:
                accepted = True
                break
        if not accepted:
            self._logger.log_warning(
                "warning.select.fallback",
                f"no queue of {group} was accepted within {attempts} draws. "
                "consider increasing random_attempts")
        self._log_pick(group, queue, quick_start=False, attempts=attempts)
        return queue

    def pick(
            self,
            group: str,
            *,
            force_quick_start: bool = False) -> str | None:
        """
        Picks the queue to process next.

        Args:
            group (str): The queue group.
            force_quick_start (bool, optional): Whether to always try new
                queues first. Defaults to False.

        Returns:
            str | None: The queue or None if the group has no active queues.
        """
        if force_quick_start or self._rng.random() < self._quick_start_factor:
            queue = self.pick_fresh(group)
            if queue is not None:
                return queue
        return self.pick_weighted(group)
