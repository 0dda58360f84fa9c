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
"""Creates redis clients for the queue store and the queue registry."""
import os
import threading
import uuid
from typing import Literal, TypedDict

from redipy import Redis, RedisConfig

from dynqueue.system.base import L_LOCAL, L_REMOTE, Locality


TEST_SALT_LOCK = threading.RLock()
"""Guards the creation of key salts."""
TEST_SALT: dict[str, str] = {}
"""The key salt of each running test."""


def get_test_salt() -> str | None:
    """
    The key salt of the currently running pytest test. Tests sharing one
    redis instance use different salts so their queues do not collide.

    Returns:
        str | None: The salt or None outside of tests.
    """
    test_id = os.getenv("PYTEST_CURRENT_TEST")
    if test_id is None:
        return None
    res = TEST_SALT.get(test_id)
    if res is None:
        with TEST_SALT_LOCK:
            res = TEST_SALT.get(test_id)
            if res is None:
                res = f"salt:{uuid.uuid4().hex}"
                TEST_SALT[test_id] = res
    return res


def get_test_config() -> RedisConfig:
    """
    The redis connection used by tests. The port can be set via the
    `TEST_REDIS_PORT` environment variable.

    Returns:
        RedisConfig: The connection settings with a salted key prefix.
    """
    return {
        "host": "localhost",
        "port": int(os.getenv("TEST_REDIS_PORT", "6380")),
        "passwd": "",
        "prefix": f"test:{get_test_salt()}",
        "path": "userdata/test/",
    }


MemoryBackendModule = TypedDict('MemoryBackendModule', {
    "name": Literal["memory"],
})
"""Keeps all data in the memory of the current process. Only workers running
in the same process can cooperate."""
RedisBackendModule = TypedDict('RedisBackendModule', {
    "name": Literal["redis"],
    "cfg": RedisConfig,
})
"""Keeps all data in redis. `cfg` are the redis connection settings."""


BackendModule = MemoryBackendModule | RedisBackendModule
"""Storage backend configuration."""


def create_redis(
        module: BackendModule,
        redis_module: str) -> tuple[Redis, Locality]:
    """
    Creates the redis client for the given backend configuration.

    Args:
        module (BackendModule): The backend configuration.
        redis_module (str): The name of the redis module to separate keys of
            different components.

    Raises:
        ValueError: If the configuration is invalid.

    Returns:
        tuple[Redis, Locality]: The client and whether it can be shared
            across processes.
    """
    if module["name"] == "memory":
        return Redis("memory"), L_LOCAL
    if module["name"] == "redis":
        return (
            Redis("redis", cfg=module["cfg"], redis_module=redis_module),
            L_REMOTE,
        )
    raise ValueError(f"unknown backend: {module['name']}")
