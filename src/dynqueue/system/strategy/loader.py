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
"""Loads selection policies."""
from typing import Literal, TypedDict

from typing_extensions import NotRequired

from dynqueue.system.logger.log import EventStream
from dynqueue.system.plugins import create_plugin, is_plugin_name
from dynqueue.system.registry.registry import QueueRegistry
from dynqueue.system.strategy.strategy import SelectionPolicy


PriorityPolicyModule = TypedDict('PriorityPolicyModule', {
    "name": Literal["priority"],
    "direction": NotRequired[Literal["max", "min"]],
})
"""Configuration for the priority score policy. `direction` defaults to
`max`."""


SpeedPolicyModule = TypedDict('SpeedPolicyModule', {
    "name": Literal["speed"],
})
"""Configuration for the throughput speed policy."""


WeightedPolicyModule = TypedDict('WeightedPolicyModule', {
    "name": Literal["weighted"],
    "random_attempts": NotRequired[int],
    "quick_start_factor": NotRequired[float],
    "seed": NotRequired[int],
})
"""Configuration for the weighted random policy."""


PolicyModule = PriorityPolicyModule | SpeedPolicyModule | WeightedPolicyModule
"""Configuration for selection policies."""


def load_policy(
        module: PolicyModule,
        registry: QueueRegistry,
        logger: EventStream) -> SelectionPolicy:
    """
    Loads a selection policy.

    Args:
        module (PolicyModule): The configuration. If `name` is a fully
            qualified python module it will be loaded as plugin.
        registry (QueueRegistry): The registry of active queues.
        logger (EventStream): The logger.

    Raises:
        ValueError: If the configuration is invalid.

    Returns:
        SelectionPolicy: The selection policy.
    """
    # pylint: disable=import-outside-toplevel
    if is_plugin_name(module["name"]):
        return create_plugin(
            SelectionPolicy, module, registry=registry, logger=logger)
    if module["name"] == "priority":
        from dynqueue.system.strategy.priority import PriorityScorePolicy
        return PriorityScorePolicy(
            registry,
            logger,
            direction=module.get("direction", "max"))
    if module["name"] == "speed":
        from dynqueue.system.strategy.speed import ThroughputSpeedPolicy
        return ThroughputSpeedPolicy(registry, logger)
    if module["name"] == "weighted":
        from dynqueue.system.strategy.weighted import (
            DEFAULT_QUICK_START_FACTOR,
            DEFAULT_RANDOM_ATTEMPTS,
            WeightedRandomPolicy,
        )
        return WeightedRandomPolicy(
            registry,
            logger,
            random_attempts=int(
                module.get("random_attempts", DEFAULT_RANDOM_ATTEMPTS)),
            quick_start_factor=float(
                module.get("quick_start_factor", DEFAULT_QUICK_START_FACTOR)),
            seed=module.get("seed"))
    raise ValueError(f"unknown selection policy: {module['name']}")
