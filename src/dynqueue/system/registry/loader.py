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
"""Loads a queue registry."""
from collections.abc import Callable

from dynqueue.system.redis_util import BackendModule, create_redis
from dynqueue.system.registry.registry import QueueRegistry


RegistryModule = BackendModule
"""Queue registry configuration."""


def load_registry(
        module: RegistryModule,
        *,
        clock: Callable[[], float] | None = None) -> QueueRegistry:
    """
    Loads a queue registry from a given configuration.

    Args:
        module (RegistryModule): The configuration.
        clock (Callable[[], float] | None, optional): Overrides the time
            source of the registry. Defaults to None.

    Raises:
        ValueError: If the configuration is invalid.

    Returns:
        QueueRegistry: The queue registry.
    """
    redis, locality = create_redis(module, "registry")
    return QueueRegistry(redis, locality, clock=clock)
