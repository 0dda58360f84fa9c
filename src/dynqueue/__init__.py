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
"""Dynqueue schedules workers across dynamically created queues that are
grouped into queue groups. Queues are activated into a group, drained by
workers according to a selection policy, and retired once empty."""


from typing import Any


_VERSION: str | None = None


def _read_pyproject_version() -> str | None:
    # pylint: disable=import-outside-toplevel
    import os
    import tomllib

    root = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))
    fname = os.path.join(root, "pyproject.toml")
    if not os.path.isfile(fname):
        return None
    with open(fname, "rb") as fin:
        project = tomllib.load(fin).get("project", {})
    if project.get("name") != "dynqueue":
        return None
    # NOTE: the asterisk marks a version of a source checkout
    return f"{project.get('version', 'unknown')}*"


def _lookup_version() -> str:
    # pylint: disable=import-outside-toplevel
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("dynqueue")
    except PackageNotFoundError:
        pass
    try:
        res = _read_pyproject_version()
    except (OSError, ValueError):
        res = None
    return "unknown" if res is None else res


def __getattr__(name: str) -> Any:
    global _VERSION  # pylint: disable=global-statement

    if name in ("version", "__version__"):
        if _VERSION is None:
            _VERSION = _lookup_version()
        return _VERSION
    raise AttributeError(f"module {__name__} has no attribute {name}")
