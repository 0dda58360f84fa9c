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
"""Loads a queue store."""
from dynqueue.system.plugins import create_plugin, is_plugin_name
from dynqueue.system.redis_util import BackendModule, create_redis
from dynqueue.system.store.store import QueueStore


QueueStoreModule = BackendModule
"""Queue store configuration. `name` can be a fully qualified python module
instead to load a queue store via plugin."""


def load_queue_store(module: QueueStoreModule) -> QueueStore:
    """
    Loads a queue store from a given configuration.

    Args:
        module (QueueStoreModule): The configuration.

    Raises:
        ValueError: If the configuration is invalid.

    Returns:
        QueueStore: The queue store.
    """
    # pylint: disable=import-outside-toplevel
    if is_plugin_name(module["name"]):
        return create_plugin(QueueStore, module)
    from dynqueue.system.store.redis import RedisQueueStore
    redis, locality = create_redis(module, "queues")
    return RedisQueueStore(redis, locality)
