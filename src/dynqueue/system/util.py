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
"""Small helpers shared across modules."""
import json
from datetime import datetime, timezone
from typing import Any, NoReturn


def is_partial_match(target: str, pattern: str) -> bool:
    """
    Whether an event name matches a filter pattern. Both are hierarchical
    names with segments joined by `.`. Only whole segments are compared.
    A pattern without leading `.` must match the first segments of the
    name. A pattern with leading `.` can match at any position.

    Examples:
    | Name               | Pattern   | Match   |
    | ------------------ | --------- | ------- |
    | `queue.retire`     | `queue`   | `True`  |
    | `queues`           | `queue`   | `False` |
    | `queue.retire`     | `retire`  | `False` |
    | `queue.retire`     | `.retire` | `True`  |
    | `debug.queue.miss` | `.queue`  | `True`  |
    | `debug.queues`     | `.queue`  | `False` |

    Args:
        target (str): The event name.
        pattern (str): The pattern.

    Returns:
        bool: Whether the name matches the pattern.
    """
    segments = target.split(".")
    anywhere = pattern.startswith(".")
    needle = pattern.removeprefix(".").split(".")
    if not anywhere:
        return segments[:len(needle)] == needle
    last = len(segments) - len(needle)
    return any(
        segments[pos:pos + len(needle)] == needle
        for pos in range(last + 1))


def full_name(cls: type) -> str:
    """
    The fully qualified name of a type, e.g., `str` or
    `dynqueue.system.strategy.strategy.SelectionPolicy`.

    Args:
        cls (type): The type.

    Returns:
        str: The name including the module unless it is a builtin.
    """
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def now() -> datetime:
    """
    The current time in the local timezone.

    Returns:
        datetime: A timezone aware timestamp.
    """
    return datetime.now(timezone.utc).astimezone()


def fmt_time(when: datetime) -> str:
    """
    Formats a timestamp for log output.

    Args:
        when (datetime): The timestamp.

    Returns:
        str: The ISO formatted timestamp.
    """
    return when.isoformat()


def to_bool(text: str | None) -> bool:
    """
    Interprets an environment variable as flag. Positive numbers and `true`
    in any casing are True. Everything else, including a missing value, is
    False.

    Args:
        text (str | None): The value.

    Returns:
        bool: The flag.
    """
    if text is None:
        return False
    text = text.strip()
    if text.lstrip("-").isdigit():
        return int(text) > 0
    return text.lower() == "true"


def to_float(text: str | None, *, default: float) -> float:
    """
    Converts a value retrieved from the store or the environment into a
    float.

    Args:
        text (str | None): The value.
        default (float): The result if there is no value.

    Raises:
        ValueError: If the value is not a number.

    Returns:
        float: The number.
    """
    if text is None:
        return default
    return float(text)


def report_json_error(err: json.JSONDecodeError) -> NoReturn:
    """
    Raises a JSON error that points to the location of the problem.

    Args:
        err (json.JSONDecodeError): The error of the JSON parser.

    Raises:
        ValueError: The error with position information.
    """
    raise ValueError(
        f"JSON parse error ({err.lineno}:{err.colno}): "
        f"{repr(err.doc)}") from err


def json_read(data: str) -> Any:
    """
    Parses JSON.

    Args:
        data (str): The JSON text.

    Raises:
        ValueError: If the text is not valid JSON.

    Returns:
        Any: The parsed value. The caller validates its layout.
    """
    try:
        return json.loads(data)
    except json.JSONDecodeError as e:
        report_json_error(e)
