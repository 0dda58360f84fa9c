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
"""Loads custom implementations of modules from python modules. A module
configuration whose `name` contains a `.` refers to a plugin."""
import importlib
from collections.abc import Mapping
from typing import Any, TypeVar

from dynqueue.system.util import full_name


T = TypeVar('T')


PLUGIN_CACHE: dict[str, dict[str, type]] = {}
"""Loaded plugin classes by base class name and module name."""


def load_plugin(base: type[T], name: str) -> type[T]:
    """
    Imports a plugin module and finds its implementation of the base class.
    The module must be importable from the current process and must define
    exactly one subclass of the base class. Imported names do not count.

    Args:
        base (type[T]): The base class.
        name (str): The fully qualified module name.

    Raises:
        ValueError: If the module defines no or several subclasses.

    Returns:
        type[T]: The plugin class.
    """
    base_name = full_name(base)
    cache = PLUGIN_CACHE.setdefault(base_name, {})
    res = cache.get(name)
    if res is None:
        mod = importlib.import_module(name)
        candidates = [
            value
            for value in vars(mod).values()
            if isinstance(value, type)
            and value.__module__ == name
            and issubclass(value, base)
        ]
        if len(candidates) != 1:
            found = sorted(cand.__name__ for cand in candidates)
            raise ValueError(
                f"ambiguous or missing plugin for {base_name}: {found}")
        res = candidates[0]
        cache[name] = res
    return res


def is_plugin_name(name: str) -> bool:
    """
    Whether a module name refers to a plugin instead of a built-in module.

    Args:
        name (str): The `name` field of a module configuration.

    Returns:
        bool: True, if the name is a fully qualified python module.
    """
    return "." in name


def create_plugin(
        base: type[T], module: Mapping[str, Any], **kwargs: Any) -> T:
    """
    Instantiates a plugin from a module configuration. All fields of the
    configuration except `name` are passed as keyword arguments.

    Args:
        base (type[T]): The expected base type.
        module (Mapping[str, Any]): The module configuration. `name` must be
            the fully qualified name of the plugin module.
        **kwargs (Any): Additional keyword arguments for the constructor.

    Returns:
        T: The plugin instance.
    """
    args = dict(module)
    plugin = load_plugin(base, f"{args.pop('name')}")
    return plugin(**args, **kwargs)
