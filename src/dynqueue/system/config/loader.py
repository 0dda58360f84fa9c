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
"""Loads a configuration from a JSON."""
from collections.abc import Callable
from typing import TypedDict

from typing_extensions import NotRequired

from dynqueue.system.base import DEFAULT_GROUP_MARKER
from dynqueue.system.config.config import Config
from dynqueue.system.logger.loader import load_event_stream, LoggerDef
from dynqueue.system.redis_util import get_test_config
from dynqueue.system.registry.loader import load_registry, RegistryModule
from dynqueue.system.scheduler import DEFAULT_NUMBER_OF_QUEUES
from dynqueue.system.store.loader import load_queue_store, QueueStoreModule
from dynqueue.system.strategy.loader import load_policy, PolicyModule
from dynqueue.system.worker.loader import HandlerModule, load_job_handler
from dynqueue.system.worker.worker import (
    DEFAULT_CONNECTION_SLEEP,
    DEFAULT_MISS_RETRIES,
)


SchedulerSettings = TypedDict('SchedulerSettings', {
    "number_of_queues": NotRequired[int],
    "group_marker": NotRequired[str],
})
"""How worker targets are resolved. `number_of_queues` is the number of
queues a group reference resolves to. `group_marker` is the prefix of group
references."""


WorkerSettings = TypedDict('WorkerSettings', {
    "handler": HandlerModule,
    "miss_retries": NotRequired[int],
    "connection_sleep": NotRequired[float],
})
"""Defaults for workers. `handler` processes the items."""


ConfigJSON = TypedDict('ConfigJSON', {
    "store": QueueStoreModule,
    "registry": RegistryModule,
    "policy": PolicyModule,
    "scheduler": SchedulerSettings,
    "worker": NotRequired[WorkerSettings],
    "logger": LoggerDef,
})
"""The configuration JSON."""


def load_config(
        config_obj: ConfigJSON,
        *,
        clock: Callable[[], float] | None = None) -> Config:
    """
    Load a configuration from a JSON.

    Args:
        config_obj (ConfigJSON): The configuration JSON.
        clock (Callable[[], float] | None, optional): Overrides the time
            source of the registry. Defaults to None.

    Raises:
        ValueError: If the configuration is invalid.

    Returns:
        Config: The configuration.
    """
    config = Config()
    logger = load_event_stream(config_obj["logger"])
    config.set_logger(logger)
    config.set_store(load_queue_store(config_obj["store"]))
    registry = load_registry(config_obj["registry"], clock=clock)
    config.set_registry(registry)
    config.set_policy(load_policy(config_obj["policy"], registry, logger))
    scheduler_obj = config_obj["scheduler"]
    config.set_scheduler_settings(
        number_of_queues=int(scheduler_obj.get(
            "number_of_queues", DEFAULT_NUMBER_OF_QUEUES)),
        group_marker=scheduler_obj.get("group_marker", DEFAULT_GROUP_MARKER))
    worker_obj = config_obj.get("worker")
    if worker_obj is not None:
        config.set_job_handler(
            load_job_handler(worker_obj["handler"], logger))
        config.set_worker_settings(
            miss_retries=int(worker_obj.get(
                "miss_retries", DEFAULT_MISS_RETRIES)),
            connection_sleep=float(worker_obj.get(
                "connection_sleep", DEFAULT_CONNECTION_SLEEP)))
    return config


def load_test(
        *,
        is_redis: bool = False,
        policy: PolicyModule | None = None,
        number_of_queues: int = DEFAULT_NUMBER_OF_QUEUES,
        group_marker: str = DEFAULT_GROUP_MARKER,
        clock: Callable[[], float] | None = None,
        disable_events: list[str] | None = None) -> Config:
    """
    Load a configuration for unit tests.

    Args:
        is_redis (bool, optional): Whether the test uses redis. Defaults to
            False.
        policy (PolicyModule | None, optional): The selection policy. If None
            a seeded weighted random policy is used. Defaults to None.
        number_of_queues (int, optional): How many queues a group reference
            resolves to. Defaults to `DEFAULT_NUMBER_OF_QUEUES`.
        group_marker (str, optional): The prefix of group references.
            Defaults to `DEFAULT_GROUP_MARKER`.
        clock (Callable[[], float] | None, optional): Overrides the time
            source of the registry. Defaults to None.
        disable_events (list[str] | None, optional): Which events to not
            print. Defaults to debug events.

    Returns:
        Config: The configuration.
    """
    store: QueueStoreModule
    registry: RegistryModule
    if is_redis:
        store = {
            "name": "redis",
            "cfg": get_test_config(),
        }
        registry = {
            "name": "redis",
            "cfg": get_test_config(),
        }
    else:
        store = {
            "name": "memory",
        }
        registry = {
            "name": "memory",
        }
    if policy is None:
        policy = {
            "name": "weighted",
            "seed": 42,
        }
    test_config: ConfigJSON = {
        "store": store,
        "registry": registry,
        "policy": policy,
        "scheduler": {
            "number_of_queues": number_of_queues,
            "group_marker": group_marker,
        },
        "worker": {
            "handler": {
                "name": "log",
            },
            "connection_sleep": 0.1,
        },
        "logger": {
            "listeners": [
                {
                    "name": "stdout",
                    "show_debug": True,
                },
            ],
            "disable_events": (
                ["debug"] if disable_events is None else disable_events),
        },
    }
    return load_config(test_config, clock=clock)
