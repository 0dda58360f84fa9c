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
"""Event types for the logging system."""
import datetime
from typing import Literal, NotRequired, TypedDict

from dynqueue.system.logger.context import ContextInfo
from dynqueue.system.logger.error import ErrorCode


ErrorEvent = TypedDict('ErrorEvent', {
    "name": Literal["error"],
    "message": str,
    "traceback": list[str],
    "code": ErrorCode,
})
"""An event to report errors."""


WarningEvent = TypedDict('WarningEvent', {
    "name": Literal["warning"],
    "message": str,
})
"""A event to report warnings."""


QueueEvent = TypedDict('QueueEvent', {
    "name": Literal["queue"],
    "action": Literal["activate", "retire", "miss"],
    "queue": str,
    "group": NotRequired[str | None],
    "parameter": NotRequired[float],
})
"""Event to indicate a change in the lifecycle of a queue. A `miss` is a
selected queue that turned out to be empty when popping."""


SelectEvent = TypedDict('SelectEvent', {
    "name": Literal["select"],
    "group": str,
    "policy": str,
    "queues": list[str],
    "phase": NotRequired[Literal["quick_start", "weighted", "score"]],
    "attempts": NotRequired[int],
})
"""Event to report which queues a selection policy picked."""


JobEvent = TypedDict('JobEvent', {
    "name": Literal["job"],
    "queue": str,
    "action": Literal["start", "done", "perform"],
    "item": NotRequired[str],
})
"""Event to report that a worker processes an item. `perform` is emitted by
the built-in log handler and carries the item."""


WorkerEvent = TypedDict('WorkerEvent', {
    "name": Literal["worker"],
    "action": Literal["start", "stop", "pause", "unpause"],
    "target": str,
    "processed": NotRequired[int],
})
"""Event to indicate that a worker has been started, stopped, or paused. A
stop event might not always be fired."""


AnyEvent = (
    ErrorEvent
    | WarningEvent
    | QueueEvent
    | SelectEvent
    | JobEvent
    | WorkerEvent
)
"""An event that can be logged to the event stream."""


EventInfo = TypedDict('EventInfo', {
    "when": datetime.datetime,
    "name": str,
    "ctx": ContextInfo,
    "event": AnyEvent,
})
"""Full information and context for events that can be logged to the event
stream."""
