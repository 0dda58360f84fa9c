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
"""Creates the event stream and its listeners from the configuration."""
from typing import Literal, TypedDict

from typing_extensions import NotRequired

from dynqueue.system.logger.log import EventListener, EventStream
from dynqueue.system.plugins import create_plugin, is_plugin_name


StdoutListenerDef = TypedDict('StdoutListenerDef', {
    "name": Literal["stdout"],
    "show_debug": NotRequired[bool],
})
"""Prints events to stdout. Debug events are only printed if `show_debug`
is set."""


EventListenerDef = StdoutListenerDef
"""Event listener configurations."""


LoggerDef = TypedDict('LoggerDef', {
    "listeners": list[EventListenerDef],
    "disable_events": list[str],
})
"""The logger. Every listener in `listeners` receives the events that are
not dropped by the patterns in `disable_events`."""


def load_event_listener(
        eldef: EventListenerDef, disable_events: list[str]) -> EventListener:
    """
    Creates a listener. A `name` containing a `.` loads a plugin module.

    Args:
        eldef (EventListenerDef): The listener configuration.
        disable_events (list[str]): Event name patterns to drop. Patterns
            match whole name segments from the start of the name. A leading
            `.` matches anywhere in the name and a leading `!` keeps the
            matching events instead.

    Raises:
        ValueError: For unknown listener names.

    Returns:
        EventListener: The listener.
    """
    # pylint: disable=import-outside-toplevel
    if is_plugin_name(eldef["name"]):
        return create_plugin(
            EventListener, eldef, disable_events=disable_events)
    if eldef["name"] == "stdout":
        from dynqueue.system.logger.listeners.stdout import StdoutListener
        return StdoutListener(
            disable_events=disable_events,
            show_debug=eldef.get("show_debug", False))
    raise ValueError(f"unknown event listener: {eldef['name']}")


def load_event_stream(logger_def: LoggerDef) -> EventStream:
    """
    Creates an event stream with all configured listeners.

    Args:
        logger_def (LoggerDef): The logger configuration.

    Returns:
        EventStream: The event stream.
    """
    logger = EventStream()
    for listener_def in logger_def["listeners"]:
        logger.add_listener(
            load_event_listener(listener_def, logger_def["disable_events"]))
    return logger
