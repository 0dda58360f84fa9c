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
"""Structured logging. Every event has a hierarchical name (segments joined
by `.`) which listeners use to decide whether they want to see it."""
import sys
import traceback
from collections.abc import Callable

from dynqueue.system.logger.context import (
    ContextInfo,
    get_ctx,
    get_preexc_ctx,
)
from dynqueue.system.logger.error import ErrorCode
from dynqueue.system.logger.event import AnyEvent, EventInfo
from dynqueue.system.util import is_partial_match, now


INVALID_FILTERS = frozenset(["", ".", "!", "!."])
"""Filter patterns that would match nothing or everything."""


class EventListener:
    """Receives events from an event stream. Subclasses implement
    `log_event` and may override `accepts`."""
    def __init__(self, *, disable_events: list[str] | None = None) -> None:
        """
        Creates an event listener. Subclasses must accept the same keyword
        arguments so they can be loaded as plugins.

        Args:
            disable_events (list[str] | None, optional): Patterns of events
                to drop. A pattern matches whole leading name segments, e.g.,
                `debug` matches `debug.job.start`. With a leading `.` the
                segments can appear anywhere in the name, e.g., `.miss`
                matches `debug.queue.miss`. A leading `!` turns the pattern
                into an exception that keeps matching events even if another
                pattern drops them. Defaults to None.

        Raises:
            ValueError: If a pattern is empty or matches everything.
        """
        self._keep: list[str] = []
        self._drop: list[str] = []
        for pattern in [] if disable_events is None else disable_events:
            if pattern in INVALID_FILTERS:
                raise ValueError(f"invalid filter: {pattern}")
            if pattern.startswith("!"):
                self._keep.append(pattern[1:])
            else:
                self._drop.append(pattern)

    def accepts(self, name: str) -> bool:  # pylint: disable=unused-argument
        """
        Whether the listener is interested in an event regardless of the
        configured patterns.

        Args:
            name (str): The event name.

        Returns:
            bool: True, if the listener wants the event.
        """
        return True

    def capture_event(self, name: str) -> bool:
        """
        Whether the listener processes an event with the given name.

        Args:
            name (str): The event name.

        Returns:
            bool: True, if the event will be passed to `log_event`.
        """
        if not self.accepts(name):
            return False
        if any(is_partial_match(name, pattern) for pattern in self._keep):
            return True
        return not any(
            is_partial_match(name, pattern) for pattern in self._drop)

    def log_event(self, event: EventInfo) -> None:
        """
        Processes an event.

        Args:
            event (EventInfo): The event with its name, time, and context.
        """
        raise NotImplementedError()


class EventStream:
    """Distributes events to listeners. Events are only created if at least
    one listener captures them. A stream without listeners drops
    everything."""
    def __init__(self) -> None:
        self._listeners: list[EventListener] = []
        self._warned: set[str] = set()

    def add_listener(self, listener: EventListener) -> None:
        """
        Adds a listener.

        Args:
            listener (EventListener): The listener.
        """
        self._listeners.append(listener)

    def log_lazy(
            self,
            name: str,
            event_gen: Callable[[], AnyEvent],
            *,
            is_error_ctx: bool = False,
            adjust_ctx: ContextInfo | None = None) -> None:
        """
        Logs an event that is only created when needed. Use this when
        creating the event requires reading from the store.

        Args:
            name (str): The event name.
            event_gen (Callable[[], AnyEvent]): Creates the event.
            is_error_ctx (bool, optional): Whether to use the context that
                was active when the current exception was raised. Defaults to
                False.
            adjust_ctx (ContextInfo | None, optional): Overrides parts of the
                context for this event. Defaults to None.
        """
        listeners = [
            listener
            for listener in self._listeners
            if listener.capture_event(name)
        ]
        if not listeners:
            return
        event = event_gen()
        if event["name"] == "warning":
            if name in self._warned:
                return
            self._warned.add(name)
        ctx = get_preexc_ctx() if is_error_ctx else get_ctx()
        if adjust_ctx is not None:
            ctx.update(adjust_ctx)
        event_info: EventInfo = {
            "when": now(),
            "name": name,
            "ctx": ctx,
            "event": event,
        }
        for listener in listeners:
            listener.log_event(event_info)

    def log_event(
            self,
            name: str,
            event: AnyEvent,
            *,
            is_error_ctx: bool = False,
            adjust_ctx: ContextInfo | None = None) -> None:
        """
        Logs an event that already exists.

        Args:
            name (str): The event name.
            event (AnyEvent): The event.
            is_error_ctx (bool, optional): Whether to use the context that
                was active when the current exception was raised. Defaults to
                False.
            adjust_ctx (ContextInfo | None, optional): Overrides parts of the
                context for this event. Defaults to None.
        """
        self.log_lazy(
            name,
            lambda: event,
            is_error_ctx=is_error_ctx,
            adjust_ctx=adjust_ctx)

    def log_warning(self, name: str, message: str) -> None:
        """
        Logs a warning. Each warning name is reported at most once per
        stream.

        Args:
            name (str): The event name.
            message (str): The warning.
        """
        self.log_event(
            name,
            {
                "name": "warning",
                "message": message,
            })

    def log_error(
            self,
            name: str,
            code: ErrorCode,
            *,
            exc: BaseException | None = None) -> None:
        """
        Logs an error with its traceback. Call this from an `except` block
        or pass the exception explicitly.

        Args:
            name (str): The event name.
            code (ErrorCode): The error code.
            exc (BaseException | None, optional): The exception. If None the
                exception currently being handled is used. Defaults to None.
        """
        if exc is None:
            exc = sys.exc_info()[1]
        if exc is None:
            tback: list[str] = []
            message = "unknown error"
        else:
            tback = [
                line.rstrip()
                for chunk in traceback.format_exception(exc)
                for line in chunk.splitlines()
            ]
            notes = getattr(exc, "__notes__", None)
            message = f"{exc}\n{notes}" if notes else f"{exc}"
        self.log_event(
            name,
            {
                "name": "error",
                "code": code,
                "message": message,
                "traceback": tback,
            },
            is_error_ctx=True)
