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
"""Tests loading plugins."""
import os
import shutil
import uuid
from collections.abc import Callable
from typing import Any, cast, TypeVar

import pytest

from dynqueue.system.config.loader import load_test
from dynqueue.system.logger.loader import EventListenerDef, load_event_listener
from dynqueue.system.logger.log import EventListener
from dynqueue.system.plugins import load_plugin
from dynqueue.system.strategy.loader import load_policy, PolicyModule
from dynqueue.system.strategy.strategy import SelectionPolicy
from dynqueue.system.worker.handler import JobHandler
from dynqueue.system.worker.loader import HandlerModule, load_job_handler


T = TypeVar('T')


HANDLER_PLUGIN = '''
from dynqueue.system.worker.handler import JobHandler


class UpperJobHandler(JobHandler):
    def __init__(self, logger, *, suffix="") -> None:
        super().__init__(logger)
        self.suffix = suffix
        self.items = []

    def perform(self, queue: str, item: str) -> None:
        self.items.append(f"{item.upper()}{self.suffix}")
'''
"""A job handler plugin written from scratch."""


def test_plugins() -> None:
    """Test loading plugins."""
    root = os.path.normpath(os.path.join(os.path.dirname(__file__), ".."))
    plugins_base = os.path.normpath(os.path.join(root, "plugins/test/"))
    test_id = f"test_{uuid.uuid4().hex}"
    plugins_folder = os.path.normpath(
        os.path.join(plugins_base, f"{test_id}/"))
    os.makedirs(plugins_folder, exist_ok=True)
    base_init = os.path.join(plugins_base, "__init__.py")
    if not os.path.exists(base_init):
        with open(base_init, "wb") as fout:
            fout.flush()
    with open(os.path.join(plugins_folder, "__init__.py"), "wb") as fout:
        fout.flush()
    config = load_test()
    registry = config.get_registry()
    logger = config.get_logger()
    test_ix = 0
    tests = []

    def add_test(
            base: type[T],
            load_fun: Callable[[dict[str, Any]], T],
            args: dict[str, Any]) -> str:
        nonlocal test_ix

        name = f"plugins.test.{test_id}.test_{test_ix}"
        args["name"] = name
        tests.append((base, load_fun, args))
        test_ix += 1
        return os.path.join(plugins_folder, f"{name.rsplit('.', 1)[-1]}.py")

    def do_test(
            base: type[T],
            name: str,
            load_fun: Callable[[dict[str, Any]], T],
            args: dict[str, Any]) -> None:
        src_file = os.path.join(root, f"src/{name.replace('.', '/')}.py")
        shutil.copy(src_file, add_test(base, load_fun, args))

    def run_tests() -> list[Any]:
        res = []
        for base, load_fun, args in tests:
            success = False
            try:
                plugin = load_fun(args)
                assert isinstance(plugin, base)
                res.append(plugin)
                success = True
            finally:
                if not success:
                    path = plugins_folder
                    for _ in range(4):
                        print(f"folder: {path}")
                        for fname in sorted(os.listdir(path)):
                            print(fname)
                        path = os.path.normpath(os.path.dirname(path))
        return res

    do_test(
        SelectionPolicy,
        "dynqueue.system.strategy.priority",
        lambda args: load_policy(
            cast(PolicyModule, args), registry, logger),
        {
            "direction": "min",
        })
    do_test(
        SelectionPolicy,
        "dynqueue.system.strategy.speed",
        lambda args: load_policy(
            cast(PolicyModule, args), registry, logger),
        {})
    do_test(
        SelectionPolicy,
        "dynqueue.system.strategy.weighted",
        lambda args: load_policy(
            cast(PolicyModule, args), registry, logger),
        {
            "quick_start_factor": 1.0,
            "seed": 1,
        })
    do_test(
        EventListener,
        "dynqueue.system.logger.listeners.stdout",
        lambda args: load_event_listener(cast(EventListenerDef, args), []),
        {
            "show_debug": True,
        })
    handler_file = add_test(
        JobHandler,
        lambda args: load_job_handler(cast(HandlerModule, args), logger),
        {
            "suffix": "!",
        })
    with open(handler_file, "w", encoding="utf-8") as fout:
        print(HANDLER_PLUGIN, file=fout)

    plugins = run_tests()
    assert len(plugins) == 5
    handler = plugins[-1]
    config.push("q_a", "hello")
    config.activate("mail", "q_a")
    worker = config.create_worker("@mail", handler=handler)
    assert worker.work(0.0) == 1
    assert handler.items == ["HELLO!"]
    assert plugins[0].get_direction() == "min"
    assert plugins[0].pick("mail") is None


def test_invalid_plugins() -> None:
    """Test loading invalid plugins."""
    with pytest.raises(ValueError, match=r"ambiguous or missing plugin"):
        load_plugin(SelectionPolicy, "plugins.test")
