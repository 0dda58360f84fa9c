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
"""Utility functions for unit tests."""
import os
from collections.abc import Iterable

import pytest

from dynqueue.system.config.config import Config
from dynqueue.system.logger.event import EventInfo
from dynqueue.system.logger.log import EventListener, EventStream
from dynqueue.system.util import to_bool
from dynqueue.system.worker.handler import JobHandler


REDIS_FLAGS = [False, True]
"""Parameters for tests that run against both backends."""


def is_redis_test_enabled() -> bool:
    """
    Whether tests against an actual redis instance are enabled. Set the
    `TEST_REDIS` environment variable to run them.

    Returns:
        bool: True, if a redis instance is available for tests.
    """
    return to_bool(os.getenv("TEST_REDIS"))


def maybe_skip_redis(is_redis: bool) -> None:
    """
    Instructs the test to be skipped if it requires redis and redis tests
    are not enabled.

    Args:
        is_redis (bool): Whether the test uses redis.
    """
    if is_redis and not is_redis_test_enabled():
        pytest.skip("redis tests are not enabled")


class FakeClock:
    """A deterministic clock. Every reading advances the time by `step`."""
    def __init__(self, start: float = 1000.0, step: float = 0.0) -> None:
        self._time = start
        self._step = step

    def __call__(self) -> float:
        res = self._time
        self._time += self._step
        return res

    def advance(self, seconds: float) -> None:
        """
        Moves the clock forward.

        Args:
            seconds (float): The number of seconds.
        """
        self._time += seconds


class CollectingListener(EventListener):
    """Records all events."""
    def __init__(self, *, disable_events: list[str] | None = None) -> None:
        super().__init__(disable_events=disable_events)
        self.events: list[EventInfo] = []

    def log_event(self, event: EventInfo) -> None:
        self.events.append(event)

    def names(self) -> list[str]:
        """
        The names of all recorded events.

        Returns:
            list[str]: The event names in order.
        """
        return [event["name"] for event in self.events]

    def get_events(self, name: str) -> list[EventInfo]:
        """
        All recorded events of the given name.

        Args:
            name (str): The event name.

        Returns:
            list[EventInfo]: The events.
        """
        return [event for event in self.events if event["name"] == name]


def add_collector(config: Config) -> CollectingListener:
    """
    Adds a listener that records all events of the configuration.

    Args:
        config (Config): The configuration.

    Returns:
        CollectingListener: The listener.
    """
    listener = CollectingListener()
    config.get_logger().add_listener(listener)
    return listener


class RecordingHandler(JobHandler):
    """Remembers every processed item. Items listed in `fail_on` raise an
    error instead."""
    def __init__(
            self,
            logger: EventStream,
            *,
            fail_on: set[str] | None = None) -> None:
        super().__init__(logger)
        self.jobs: list[tuple[str, str]] = []
        self._fail_on = set() if fail_on is None else fail_on

    def perform(self, queue: str, item: str) -> None:
        self.jobs.append((queue, item))
        if item in self._fail_on:
            raise ValueError(f"cannot process {item}")

    def queues(self) -> list[str]:
        """
        The queues of the processed items in processing order.

        Returns:
            list[str]: The queues.
        """
        return [queue for queue, _ in self.jobs]


def fill_queue(config: Config, queue: str, count: int) -> list[str]:
    """
    Pushes items to a queue.

    Args:
        config (Config): The configuration.
        queue (str): The queue.
        count (int): The number of items.

    Returns:
        list[str]: The pushed items.
    """
    items = [f"{queue}:{ix}" for ix in range(count)]
    for item in items:
        config.push(queue, item)
    return items


def select_and_pop(
        config: Config,
        target: str,
        *,
        limit: int | None = None) -> list[str]:
    """
    Repeatedly resolves the target and pops one item from the first
    selected queue that has one.

    Args:
        config (Config): The configuration.
        target (str): The worker target.
        limit (int | None, optional): The maximum number of pops. If None,
            popping stops once no queue gets selected. Defaults to None.

    Returns:
        list[str]: The queues that provided items in order.
    """
    scheduler = config.get_scheduler()
    res: list[str] = []
    while limit is None or len(res) < limit:
        queues = scheduler.resolve(target)
        if not queues:
            break
        found = False
        for queue in queues:
            if scheduler.pop(queue) is not None:
                res.append(queue)
                found = True
                break
        if not found and not scheduler.is_group_ref(target):
            break
    return res


def compute_first_n(order: Iterable[str], count: int) -> dict[str, int]:
    """
    Computes after how many selections each queue was selected `count`
    times.

    Args:
        order (Iterable[str]): The selected queues in order.
        count (int): The number of selections per queue.

    Returns:
        dict[str, int]: The number of total selections needed for each queue.
            Queues that never reached the count are missing.
    """
    seen: dict[str, int] = {}
    res: dict[str, int] = {}
    for ix, queue in enumerate(order):
        seen[queue] = seen.get(queue, 0) + 1
        if seen[queue] == count:
            res[queue] = ix + 1
    return res
