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
"""Worker ids, queue group references, and the module base class."""
import uuid
from typing import Literal


DEFAULT_GROUP_MARKER = "@"
"""The prefix that distinguishes a queue group reference from a literal queue
name, as in `@mailings`."""


ID_DISPLAY_LENGTH: int | None = None
"""Number of hex digits of a worker id shown in log output. All digits are
shown if None."""


def set_debug_output_length(output_length: int | None) -> None:
    """
    Sets how many hex digits of worker ids are shown in log output.

    Args:
        output_length (int | None): The number of digits or None for all.
    """
    global ID_DISPLAY_LENGTH  # pylint: disable=global-statement

    ID_DISPLAY_LENGTH = output_length


def trim_id(text_id: str) -> str:
    """
    Shortens an id for log output.

    Args:
        text_id (str): The hex digits of the id.

    Returns:
        str: The digits that should be shown.
    """
    if ID_DISPLAY_LENGTH is None:
        return text_id
    return text_id[:ID_DISPLAY_LENGTH]


class WorkerId:
    """Identifies one worker loop. Ids are random and not stored anywhere;
    they only make log events of different workers distinguishable."""
    def __init__(self, raw_id: uuid.UUID) -> None:
        """
        Wraps a UUID. Use `create` or `parse` to obtain ids.

        Args:
            raw_id (uuid.UUID): The UUID.
        """
        self._id = raw_id

    @staticmethod
    def prefix() -> str:
        """
        The first character of the parseable form.

        Returns:
            str: The prefix.
        """
        return "W"

    @staticmethod
    def create() -> 'WorkerId':
        """
        Creates a new random id.

        Returns:
            WorkerId: The id.
        """
        return WorkerId(uuid.uuid4())

    @classmethod
    def parse(cls, text: str) -> 'WorkerId':
        """
        Reads an id from its parseable form as returned by `to_parseable`.

        Args:
            text (str): The parseable form.

        Raises:
            ValueError: If the text is not a worker id.

        Returns:
            WorkerId: The id.
        """
        if not text.startswith(cls.prefix()):
            raise ValueError(f"invalid prefix for {cls.__name__}: {text}")
        hex_id = text[len(cls.prefix()):]
        if len(hex_id) != 32 or "-" in hex_id:
            raise ValueError(f"invalid {cls.__name__}: {text}")
        return cls(uuid.UUID(hex_id))

    def to_parseable(self) -> str:
        """
        The parseable form of the id, e.g., for environment variables.

        Returns:
            str: The prefix followed by the hex digits.
        """
        return f"{self.prefix()}{self._id.hex}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WorkerId):
            return False
        return self._id == other._id

    def __ne__(self, other: object) -> bool:
        return not self.__eq__(other)

    def __hash__(self) -> int:
        return hash(self._id)

    def __str__(self) -> str:
        return f"{self.prefix()}[{trim_id(self._id.hex)}]"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}[{self}]"


def is_group_ref(target: str, marker: str = DEFAULT_GROUP_MARKER) -> bool:
    """
    Whether a worker target refers to a queue group.

    Args:
        target (str): The configured worker target.
        marker (str, optional): The group marker prefix. Defaults to
            `DEFAULT_GROUP_MARKER`.

    Returns:
        bool: True, if the target is a group reference.
    """
    return target.startswith(marker)


def to_group_ref(group: str, marker: str = DEFAULT_GROUP_MARKER) -> str:
    """
    Creates the group reference for a given group name.

    Args:
        group (str): The group name.
        marker (str, optional): The group marker prefix. Defaults to
            `DEFAULT_GROUP_MARKER`.

    Returns:
        str: The group reference, e.g., `@mailings`.
    """
    return f"{marker}{group}"


def group_from_ref(target: str, marker: str = DEFAULT_GROUP_MARKER) -> str:
    """
    Extracts the group name from a group reference.

    Args:
        target (str): The group reference.
        marker (str, optional): The group marker prefix. Defaults to
            `DEFAULT_GROUP_MARKER`.

    Raises:
        ValueError: If the target is not a group reference.

    Returns:
        str: The group name.
    """
    if not is_group_ref(target, marker):
        raise ValueError(f"{target} is not a group reference")
    return target.removeprefix(marker)


def validate_name(
        kind: Literal["queue", "group"],
        name: str,
        marker: str | None = DEFAULT_GROUP_MARKER) -> str:
    """
    Ensures that a queue or group name can be stored safely.

    Args:
        kind (Literal["queue", "group"]): What the name denotes.
        name (str): The name.
        marker (str | None, optional): The group marker prefix names must
            not start with. If None, only empty names are rejected. Defaults
            to `DEFAULT_GROUP_MARKER`.

    Raises:
        ValueError: If the name is empty or starts with the group marker.

    Returns:
        str: The name.
    """
    if not name:
        raise ValueError(f"{kind} name must not be empty")
    if marker is not None and is_group_ref(name, marker):
        raise ValueError(f"{kind} name must not start with {marker}: {name}")
    return name


Locality = Literal[
    "local",
    "remote",
    "either",
]
"""Where the state of a module lives. `local` state is only visible to the
current process. `remote` state is shared through an external store.
`either` modules adapt to the modules they are combined with."""

L_LOCAL: Locality = "local"
"""The state is only visible to the current process."""
L_REMOTE: Locality = "remote"
"""The state is shared with workers in other processes."""
L_EITHER: Locality = "either"
"""The module can be combined with both local and remote modules."""


class Module:  # pylint: disable=too-few-public-methods
    """Base class of configurable components. A deployment must not mix local
    and remote modules since workers in other processes would not see the
    local state."""
    @staticmethod
    def locality() -> Locality:
        """
        Where the state of the module lives.

        Returns:
            Locality: The locality.
        """
        raise NotImplementedError()
