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
"""Tests the queue registry."""
import pytest

from dynqueue.system.redis_util import get_test_config
from dynqueue.system.registry.loader import load_registry, RegistryModule
from dynqueue.system.registry.registry import QueueRegistry
from test.util import FakeClock, maybe_skip_redis, REDIS_FLAGS


def create_registry(is_redis: bool, clock: FakeClock) -> QueueRegistry:
    """
    Creates a registry for testing.

    Args:
        is_redis (bool): Whether to use redis.
        clock (FakeClock): The clock.

    Returns:
        QueueRegistry: The registry.
    """
    maybe_skip_redis(is_redis)
    module: RegistryModule
    if is_redis:
        module = {
            "name": "redis",
            "cfg": get_test_config(),
        }
    else:
        module = {
            "name": "memory",
        }
    return load_registry(module, clock=clock)


@pytest.mark.parametrize("is_redis", REDIS_FLAGS)
def test_lifecycle(is_redis: bool) -> None:
    """Test activating and retiring queues."""
    clock = FakeClock(start=100.0)
    registry = create_registry(is_redis, clock)
    assert registry.group_of("q_b") is None
    assert registry.members("mail") == []
    registry.activate("mail", "q_b", 0.5)
    clock.advance(5.0)
    registry.activate("mail", "q_a")
    assert registry.group_of("q_b") == "mail"
    assert registry.members("mail") == ["q_a", "q_b"]
    assert registry.member_count("mail") == 2
    assert registry.parameter("mail", "q_b") == 0.5
    assert registry.parameter("mail", "q_a") == 1.0
    assert registry.parameter("news", "q_a") is None
    assert registry.fresh_count("mail") == 2
    assert registry.snapshot("mail") == {
        "q_a": {
            "work": 0.0,
            "started": 105.0,
            "parameter": 1.0,
        },
        "q_b": {
            "work": 0.0,
            "started": 100.0,
            "parameter": 0.5,
        },
    }
    assert registry.snapshot("news") == {}

    assert registry.retire("q_b")
    assert not registry.retire("q_b")
    assert registry.group_of("q_b") is None
    assert registry.parameter("mail", "q_b") is None
    assert registry.members("mail") == ["q_a"]
    assert list(registry.snapshot("mail").keys()) == ["q_a"]
    assert registry.fresh_count("mail") == 1
    assert registry.pop_fresh("mail") == "q_a"


@pytest.mark.parametrize("is_redis", REDIS_FLAGS)
def test_work_counter(is_redis: bool) -> None:
    """Test that work is only counted for active queues."""
    registry = create_registry(is_redis, FakeClock())
    registry.increment_work("q_plain")
    assert registry.units_worked("q_plain") == 0
    registry.activate("mail", "q_mail")
    for _ in range(3):
        registry.increment_work("q_mail")
    assert registry.units_worked("q_mail") == 3
    assert registry.snapshot("mail")["q_mail"]["work"] == 3.0
    registry.retire("q_mail")
    assert registry.units_worked("q_mail") == 0
    registry.increment_work("q_mail")
    assert registry.units_worked("q_mail") == 0
    registry.activate("mail", "q_mail")
    assert registry.units_worked("q_mail") == 0


@pytest.mark.parametrize("is_redis", REDIS_FLAGS)
def test_fresh_queues(is_redis: bool) -> None:
    """Test the order of fresh queues."""
    registry = create_registry(is_redis, FakeClock())
    for queue in ["q_c", "q_a", "q_b"]:
        registry.activate("mail", queue)
    assert registry.pop_fresh("mail") == "q_c"
    assert registry.pop_fresh("mail") == "q_a"
    assert registry.fresh_count("mail") == 1
    assert registry.pop_fresh("mail") == "q_b"
    assert registry.pop_fresh("mail") is None
    assert registry.fresh_count("mail") == 0
    assert registry.members("mail") == ["q_a", "q_b", "q_c"]


@pytest.mark.parametrize("is_redis", REDIS_FLAGS)
def test_groups_are_separate(is_redis: bool) -> None:
    """Test that groups do not share queues."""
    registry = create_registry(is_redis, FakeClock())
    registry.activate("mail", "q_mail")
    registry.activate("news", "q_news", 2.0)
    assert registry.members("mail") == ["q_mail"]
    assert registry.members("news") == ["q_news"]
    assert registry.parameter("mail", "q_news") is None
    assert registry.group_of("q_news") == "news"
    assert registry.retire("q_mail")
    assert registry.members("news") == ["q_news"]


@pytest.mark.parametrize("is_redis", REDIS_FLAGS)
def test_retire_drops_fresh(is_redis: bool) -> None:
    """Test that retired queues leave the fresh queues."""
    registry = create_registry(is_redis, FakeClock())
    for queue in ["q_d", "q_c", "q_a", "q_b"]:
        registry.activate("mail", queue)
    registry.activate("news", "q_news")
    assert registry.retire("q_a")
    assert registry.retire("q_d")
    assert registry.fresh_count("mail") == 2
    assert registry.fresh_count("news") == 1
    assert registry.pop_fresh("mail") == "q_c"
    assert registry.retire("q_b")
    assert registry.retire("q_c")
    assert registry.fresh_count("mail") == 0
    assert registry.pop_fresh("mail") is None
    assert registry.pop_fresh("news") == "q_news"


@pytest.mark.parametrize("is_redis", REDIS_FLAGS)
def test_concurrent_retire(
        is_redis: bool, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that only one of several racing retirements succeeds."""
    registry = create_registry(is_redis, FakeClock())
    registry.activate("mail", "q_mail")
    assert registry.retire("q_mail")
    # a second worker that read the owning group before the removal
    monkeypatch.setattr(registry, "group_of", lambda queue: "mail")
    assert not registry.retire("q_mail")
    assert registry.members("mail") == []
    assert registry.fresh_count("mail") == 0
