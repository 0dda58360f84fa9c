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
"""Loads job handlers."""
from typing import Literal, TypedDict

from dynqueue.system.logger.log import EventStream
from dynqueue.system.plugins import create_plugin, is_plugin_name
from dynqueue.system.worker.handler import JobHandler


LogHandlerModule = TypedDict('LogHandlerModule', {
    "name": Literal["log"],
})
"""A handler that only reports items to the event stream."""


HandlerModule = LogHandlerModule
"""Job handler configuration."""


def load_job_handler(
        module: HandlerModule, logger: EventStream) -> JobHandler:
    """
    Loads a job handler.

    Args:
        module (HandlerModule): The configuration. If `name` is a fully
            qualified python module it will be loaded as plugin.
        logger (EventStream): The logger.

    Raises:
        ValueError: If the configuration is invalid.

    Returns:
        JobHandler: The job handler.
    """
    # pylint: disable=import-outside-toplevel
    if is_plugin_name(module["name"]):
        return create_plugin(JobHandler, module, logger=logger)
    if module["name"] == "log":
        from dynqueue.system.worker.handler import LogJobHandler
        return LogJobHandler(logger)
    raise ValueError(f"unknown job handler: {module['name']}")
