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
"""Tests for the utility modules."""
import os
import tomllib

import pytest

from dynqueue.system.base import (
    group_from_ref,
    is_group_ref,
    set_debug_output_length,
    to_group_ref,
    WorkerId,
)
from dynqueue.system.util import is_partial_match, to_bool, to_float
from test.util import CollectingListener


def test_partial_match() -> None:
    """Test matching event names."""
    assert is_partial_match("foo.bar", "foo")
    assert is_partial_match("foo", "foo")
    assert not is_partial_match("foobar", "foo")
    assert not is_partial_match("foo.bar", "bar")
    assert is_partial_match("foo.bar", ".bar")
    assert is_partial_match("foo.bar.baz", ".bar")
    assert not is_partial_match("foo.barbaz", ".bar")


def test_event_filters() -> None:
    """Test disabling and including events."""
    listener = CollectingListener(
        disable_events=["debug", ".miss", "!debug.job"])
    assert listener.capture_event("queue.activate")
    assert not listener.capture_event("debug.select.weighted")
    assert listener.capture_event("debug.job.start")
    assert not listener.capture_event("debug.queue.miss")
    assert listener.capture_event("tally.worker.start")
    with pytest.raises(ValueError, match=r"invalid filter"):
        CollectingListener(disable_events=["!."])


def test_conversions() -> None:
    """Test converting stored and environment values."""
    assert to_bool("1")
    assert to_bool("true")
    assert to_bool("True")
    assert not to_bool("0")
    assert not to_bool("no")
    assert not to_bool(None)
    assert to_float(None, default=1.5) == 1.5
    assert to_float("0.25", default=1.0) == 0.25
    with pytest.raises(ValueError):
        to_float("fast", default=1.0)


def test_group_refs() -> None:
    """Test group references."""
    assert is_group_ref("@mail")
    assert not is_group_ref("mail")
    assert is_group_ref("#mail", "#")
    assert to_group_ref("mail") == "@mail"
    assert group_from_ref("@mail") == "mail"
    assert group_from_ref("##mail", "#") == "#mail"
    with pytest.raises(ValueError, match=r"not a group reference"):
        group_from_ref("mail")


def test_worker_id() -> None:
    """Test parsing worker ids."""
    worker_id = WorkerId.create()
    other = WorkerId.parse(worker_id.to_parseable())
    assert worker_id == other
    assert hash(worker_id) == hash(other)
    assert worker_id != WorkerId.create()
    assert f"{worker_id}".startswith("W[")
    set_debug_output_length(4)
    try:
        assert f"{worker_id}" == f"W[{worker_id.to_parseable()[1:5]}]"
    finally:
        set_debug_output_length(None)
    with pytest.raises(ValueError, match=r"invalid prefix"):
        WorkerId.parse(f"X{worker_id.to_parseable()[1:]}")
    with pytest.raises(ValueError, match=r"invalid WorkerId"):
        WorkerId.parse("W1234")


def test_version() -> None:
    """Test the version field."""
    # pylint: disable=import-outside-toplevel
    import dynqueue

    pyproject_fname = os.path.join(
        os.path.dirname(__file__), "../pyproject.toml")
    with open(pyproject_fname, "rb") as fin:
        pyproject = tomllib.load(fin)
    version = pyproject["project"]["version"]
    versions = (version, f"{version}*")
    assert dynqueue.__version__ in versions
    assert dynqueue.version in versions
