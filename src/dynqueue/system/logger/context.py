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
"""Thread local context that is attached to every logged event. The context
tells which worker, queue group, and queue an event belongs to."""
import contextlib
import threading
from collections.abc import Iterator
from typing import TypedDict

from typing_extensions import NotRequired

from dynqueue.system.base import WorkerId


ContextInfo = TypedDict('ContextInfo', {
    "worker": NotRequired[WorkerId | None],
    "group": NotRequired[str | None],
    "queue": NotRequired[str | None],
})
"""Context of the current execution state."""


class _ContextState(threading.local):
    """Per thread context. `preexc` keeps the context of the innermost block
    that was left by an exception so errors can be reported with the context
    in which they were raised."""
    def __init__(self) -> None:
        super().__init__()
        self.current: ContextInfo = {}
        self.preexc: ContextInfo = {}


STATE = _ContextState()
"""The context of each thread."""


@contextlib.contextmanager
def add_context(add_info: ContextInfo) -> Iterator[None]:
    """
    Extends the context for the duration of the block.

    Args:
        add_info (ContextInfo): The context information to add or override.
    """
    outer = STATE.current
    inner: ContextInfo = {**outer, **add_info}  # type: ignore[typeddict-item]
    STATE.current = inner
    STATE.preexc = inner
    try:
        yield
    except BaseException:
        STATE.current = outer
        raise
    STATE.current = outer
    STATE.preexc = outer


def get_ctx() -> ContextInfo:
    """
    Retrieves a copy of the current context.

    Returns:
        ContextInfo: The context.
    """
    return STATE.current.copy()


def get_preexc_ctx() -> ContextInfo:
    """
    Retrieves a copy of the context in which the most recent exception was
    raised. Without exception this is the current context.

    Returns:
        ContextInfo: The context.
    """
    return STATE.preexc.copy()


def ctx_format(ctx: ContextInfo) -> str:
    """
    Formats a context as `worker queue@group`. Missing parts are omitted or
    replaced by `*`.

    Args:
        ctx (ContextInfo): The context.

    Returns:
        str: The context as string.
    """
    worker = ctx.get("worker")
    group = ctx.get("group")
    queue = ctx.get("queue")
    parts = [f"{WorkerId.prefix()}[-]" if worker is None else f"{worker}"]
    if queue is not None or group is not None:
        where = "*" if queue is None else queue
        parts.append(where if group is None else f"{where}@{group}")
    return " ".join(parts)
