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
"""Prints events to stdout."""
from typing import Any

from dynqueue.system.logger.context import ctx_format
from dynqueue.system.logger.event import EventInfo
from dynqueue.system.logger.log import EventListener
from dynqueue.system.util import fmt_time


class StdoutListener(EventListener):
    """Prints one line per event. Tracebacks of errors follow on separate
    lines. Events whose name starts with `debug.` are only printed if
    `show_debug` is set."""
    def __init__(
            self,
            *,
            disable_events: list[str] | None = None,
            show_debug: bool = False) -> None:
        super().__init__(disable_events=disable_events)
        self._show_debug = show_debug

    def accepts(self, name: str) -> bool:
        return self._show_debug or not name.startswith("debug.")

    @staticmethod
    def _render(key: str, value: Any) -> str:
        if key == "traceback":
            return "\n".join(value)
        if isinstance(value, list):
            return ",".join(f"{elem}" for elem in value)
        return f"{value}"

    def log_event(self, event: EventInfo) -> None:
        fields = " ".join(
            f"{key}={self._render(key, value)}"
            for key, value in event["event"].items()
            if key != "name")
        print(
            f"{fmt_time(event['when'])} [{ctx_format(event['ctx'])}] "
            f"{event['name']}: {fields}".rstrip())
