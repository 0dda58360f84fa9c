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
"""A redis implementation of a queue store."""
from typing import Literal

from redipy import Redis

from dynqueue.system.base import Locality
from dynqueue.system.store.store import QueueStore


KeyName = Literal[
    "queues",  # set str
    "queue",  # list str
]
"""Base keys for different storage categories."""


class RedisQueueStore(QueueStore):
    """Redis backed queue store. Depending on the client this can be an
    actual redis instance or redipy's in-memory backend."""
    def __init__(self, redis: Redis, locality: Locality) -> None:
        """
        Creates a queue store.

        Args:
            redis (Redis): The redis client.
            locality (Locality): Whether the client is shared across
                processes.
        """
        self._redis = redis
        self._locality = locality

    def locality(self) -> Locality:  # type: ignore[override]
        return self._locality

    @staticmethod
    def key(name: KeyName, remain: str) -> str:
        """
        Computes the full key.

        Args:
            name (KeyName): The base key.
            remain (str): The remainder of the key.

        Returns:
            str: The full key.
        """
        return f"{name}:{remain}"

    @classmethod
    def key_known(cls) -> str:
        """
        Computes the key of the set of known queues.

        Returns:
            str: The full key. The type of the key is a set.
        """
        return cls.key("queues", "all")

    @classmethod
    def key_queue(cls, queue: str) -> str:
        """
        Computes the key holding the items of a queue.

        Args:
            queue (str): The queue.

        Returns:
            str: The full key. The type of the key is a list.
        """
        return cls.key("queue", queue)

    def push(self, queue: str, item: str) -> None:
        with self._redis.pipeline() as pipe:
            pipe.sadd(self.key_known(), queue)
            pipe.rpush(self.key_queue(queue), item)
            pipe.execute()

    def pop(self, queue: str) -> str | None:
        return self._redis.lpop(self.key_queue(queue))

    def length(self, queue: str) -> int:
        return self._redis.llen(self.key_queue(queue))

    def remove_queue(self, queue: str) -> None:
        with self._redis.pipeline() as pipe:
            pipe.srem(self.key_known(), queue)
            pipe.delete(self.key_queue(queue))
            pipe.execute()

    def queues(self) -> list[str]:
        return sorted(self._redis.smembers(self.key_known()))

    def queue_exists(self, queue: str) -> bool:
        return self._redis.sismember(self.key_known(), queue)
