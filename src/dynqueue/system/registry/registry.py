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
"""A store backed registry of queue group membership."""
import math
import time
from collections.abc import Callable
from typing import Literal, TypedDict

from redipy import ExecFunction, Redis
from redipy.symbolic.rlist import RedisList
from redipy.symbolic.seq import FnContext

from dynqueue.system.base import Locality, Module, validate_name
from dynqueue.system.util import to_float


KeyName = Literal[
    "lookup",  # hash queue -> group
    "param",  # hash queue -> float
    "start",  # hash queue -> float (seconds)
    "work",  # hash queue -> int
    "members",  # set queue
    "fresh",  # list queue
]
"""Base keys for different storage categories."""


NEUTRAL_PARAMETER = 1.0
"""The policy parameter used if none is given. It is a full weight, a
selection probability of 1, or a speed factor of 1 respectively."""


QueueInfo = TypedDict('QueueInfo', {
    "work": float | None,
    "started": float | None,
    "parameter": float,
})
"""The live metadata of an active queue. `work` or `started` can be None if
the queue got retired while its metadata was being read."""


class QueueRegistry(Module):
    """Tracks group membership, policy parameters, activation times, and
    work counters of active queues. All records of a queue are keyed by its
    name so retirement can remove them without knowing the policy."""
    def __init__(
            self,
            redis: Redis,
            locality: Locality,
            *,
            clock: Callable[[], float] | None = None) -> None:
        """
        Creates a registry.

        Args:
            redis (Redis): The redis client.
            locality (Locality): Whether the client is shared across
                processes.
            clock (Callable[[], float] | None, optional): The time source in
                seconds. All processes sharing a registry must use comparable
                clocks. Defaults to `time.time`.
        """
        self._redis = redis
        self._locality = locality
        self._clock = time.time if clock is None else clock
        self._drop_fresh = self._drop_fresh_script()

    def locality(self) -> Locality:  # type: ignore[override]
        return self._locality

    def now(self) -> float:
        """
        The current time of the registry clock.

        Returns:
            float: The time in seconds.
        """
        return self._clock()

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
    def key_lookup(cls) -> str:
        """
        Computes the key of the queue to group lookup.

        Returns:
            str: The full key. The type of the key is a hash.
        """
        return cls.key("lookup", "all")

    @classmethod
    def key_group(
            cls,
            name: Literal["param", "start", "work", "members", "fresh"],
            group: str) -> str:
        """
        Computes the key of per group records.

        Args:
            name (Literal["param", "start", "work", "members", "fresh"]): The
                record kind. `members` is a set, `fresh` is a list, and all
                others are hashes keyed by queue name.
            group (str): The queue group.

        Returns:
            str: The full key.
        """
        return cls.key(name, group)

    def activate(
            self,
            group: str,
            queue: str,
            parameter: float = NEUTRAL_PARAMETER) -> None:
        """
        Adds a queue to a queue group. Call this once all items have been
        pushed to the queue. Pushing is not allowed after activation.
        Activating a queue again in the same group resets its parameter and
        counters.

        Args:
            group (str): The queue group.
            queue (str): The queue.
            parameter (float, optional): The policy parameter, i.e., the
                priority weight, the selection probability, or the speed
                factor. Defaults to `NEUTRAL_PARAMETER`.

        Raises:
            ValueError: If a name is empty or the parameter is invalid.
                Also if the queue is active in a different group.
        """
        validate_name("group", group, None)
        validate_name("queue", queue, None)
        if not math.isfinite(parameter) or parameter < 0.0:
            raise ValueError(f"invalid parameter for {queue}: {parameter}")
        prev = self.group_of(queue)
        if prev is not None and prev != group:
            raise ValueError(
                f"cannot activate {queue} in {group}: "
                f"it is already active in {prev}")
        # NOTE: the lookup must exist before the queue can be selected or
        # drained so that draining it always retires it
        self._redis.hset(self.key_lookup(), {queue: group})
        with self._redis.pipeline() as pipe:
            pipe.hset(self.key_group("param", group), {queue: f"{parameter}"})
            pipe.hset(self.key_group("start", group), {queue: f"{self.now()}"})
            pipe.hset(self.key_group("work", group), {queue: "0"})
            pipe.rpush(self.key_group("fresh", group), queue)
            pipe.execute()
        self._redis.sadd(self.key_group("members", group), queue)

    def retire(self, queue: str) -> bool:
        """
        Removes all records of an active queue. Retiring a queue that is not
        active has no effect. Concurrent retirements of the same queue are
        safe.

        Args:
            queue (str): The queue.

        Returns:
            bool: Whether this call removed the queue. Of several concurrent
                retirements of the same queue only one returns True.
        """
        group = self.group_of(queue)
        if group is None:
            return False
        with self._redis.pipeline() as pipe:
            pipe.srem(self.key_group("members", group), queue)
            pipe.hdel(self.key_group("param", group), queue)
            pipe.hdel(self.key_group("start", group), queue)
            pipe.hdel(self.key_group("work", group), queue)
            pipe.execute()
        self._drop_fresh(
            keys={"fresh": self.key_group("fresh", group)},
            args={"queue": queue})
        return self._redis.hdel(self.key_lookup(), queue) > 0

    def _drop_fresh_script(self) -> ExecFunction:
        ctx = FnContext()
        fresh = RedisList(ctx.add_key("fresh"))
        queue = ctx.add_arg("queue")
        remain = ctx.add_local(fresh.llen())
        cur = ctx.add_local(None)

        # rotates the list once keeping the order of all other entries
        loop = ctx.while_(remain.gt_(0))
        loop.add(cur.assign(fresh.lpop()))
        b_then, _ = loop.if_(cur.ne_(queue))
        b_then.add(fresh.rpush(cur))
        loop.add(remain.assign(remain - 1))

        ctx.set_return_value(None)
        return self._redis.register_script(ctx)

    def group_of(self, queue: str) -> str | None:
        """
        The group owning the queue.

        Args:
            queue (str): The queue.

        Returns:
            str | None: The queue group or None if the queue is not active.
        """
        return self._redis.hget(self.key_lookup(), queue)

    def increment_work(self, queue: str) -> None:
        """
        Counts one unit of work for the queue. Queues that are not active are
        not tracked.

        Args:
            queue (str): The queue.
        """
        group = self.group_of(queue)
        if group is None:
            return
        work_key = self.key_group("work", group)
        self._redis.hincrby(work_key, queue, 1)
        if self.group_of(queue) is None:
            # retired in the meantime
            self._redis.hdel(work_key, queue)

    def units_worked(self, queue: str) -> int:
        """
        The units of work counted for an active queue.

        Args:
            queue (str): The queue.

        Returns:
            int: The units of work. Queues that are not active have no work.
        """
        group = self.group_of(queue)
        if group is None:
            return 0
        res = self._redis.hget(self.key_group("work", group), queue)
        return int(to_float(res, default=0.0))

    def members(self, group: str) -> list[str]:
        """
        The active queues of a group.

        Args:
            group (str): The queue group.

        Returns:
            list[str]: The queues in sorted order.
        """
        return sorted(self._redis.smembers(self.key_group("members", group)))

    def member_count(self, group: str) -> int:
        """
        The number of active queues of a group.

        Args:
            group (str): The queue group.

        Returns:
            int: The number of active queues.
        """
        return self._redis.scard(self.key_group("members", group))

    def parameter(self, group: str, queue: str) -> float | None:
        """
        The policy parameter of a queue.

        Args:
            group (str): The queue group.
            queue (str): The queue.

        Returns:
            float | None: The parameter or None if the queue is not active in
                the group.
        """
        res = self._redis.hget(self.key_group("param", group), queue)
        if res is None:
            return None
        return float(res)

    def snapshot(self, group: str) -> dict[str, QueueInfo]:
        """
        Reads the current metadata of all active queues of a group. The
        reads are not atomic.

        Args:
            group (str): The queue group.

        Returns:
            dict[str, QueueInfo]: The metadata for each active queue in
                sorted order of the queue names.
        """
        members = self.members(group)
        if not members:
            return {}
        params = self._redis.hgetall(self.key_group("param", group))
        starts = self._redis.hgetall(self.key_group("start", group))
        works = self._redis.hgetall(self.key_group("work", group))
        res: dict[str, QueueInfo] = {}
        for queue in members:
            work = works.get(queue)
            started = starts.get(queue)
            res[queue] = {
                "work": None if work is None else float(work),
                "started": None if started is None else float(started),
                "parameter": to_float(
                    params.get(queue), default=NEUTRAL_PARAMETER),
            }
        return res

    def pop_fresh(self, group: str) -> str | None:
        """
        Removes the oldest entry of the queues that have been activated but
        never selected. The queue might not be active anymore.

        Args:
            group (str): The queue group.

        Returns:
            str | None: The queue or None if there are no fresh queues.
        """
        return self._redis.lpop(self.key_group("fresh", group))

    def fresh_count(self, group: str) -> int:
        """
        The number of entries of queues that have been activated but never
        selected. Entries of already retired queues are included.

        Args:
            group (str): The queue group.

        Returns:
            int: The number of entries.
        """
        return self._redis.llen(self.key_group("fresh", group))
