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
"""Parses the command line arguments."""
import argparse
import json
import os
import sys
from collections.abc import Callable

from dynqueue.app.worker import load_config_file, worker_start
from dynqueue.system.base import DEFAULT_GROUP_MARKER
from dynqueue.system.error import QueueGroupNamingError
from dynqueue.system.util import to_float


def parse_args_worker(parser: argparse.ArgumentParser) -> None:
    """
    Parse command line arguments for a dynqueue worker.

    Args:
        parser (argparse.ArgumentParser): The argument parser.
    """
    parser.add_argument(
        "--queue",
        type=str,
        default=None,
        help=(
            "the queue or queue group to process. if omitted the QUEUE_GROUP "
            "environment variable is used and must name a queue group"))
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help=(
            "seconds to wait for new items. if not positive the worker stops "
            "when no items are available. defaults to INTERVAL or 5"))
    parser.add_argument(
        "--count",
        type=int,
        default=1,
        help="number of worker threads")
    parser.add_argument(
        "--handler",
        type=str,
        default=None,
        help="python module of a job handler plugin")


def display_welcome(args: argparse.Namespace, command: str) -> None:
    """
    Prints the welcome message if `--no-welcome` is unset.

    Args:
        args (argparse.Namespace): The arguments.
        command (str): The name of the command.
    """
    if args.no_welcome:
        return
    import dynqueue  # pylint: disable=import-outside-toplevel

    print(
        f"Starting {dynqueue.__name__}({dynqueue.__version__}) "
        f"as {command}")
    print(f"python version: {sys.version}")


def abort(message: str) -> Callable[[], int | None]:
    """
    Reports a usage error.

    Args:
        message (str): The message.

    Returns:
        Callable[[], int | None]: A function that returns a failing exit code.
    """
    print(message, file=sys.stderr)
    return lambda: 1


def parse_args() -> tuple[
        argparse.Namespace,
        Callable[[argparse.Namespace], Callable[[], int | None]]]:
    """
    Parse command line arguments for the dynqueue CLI.

    Returns:
        tuple[
                argparse.Namespace,
                Callable[[argparse.Namespace], Callable[[], int | None]]]: A
            tuple of the parsed arguments and the execute function to run.
    """
    parser = argparse.ArgumentParser(description="Run a dynqueue command.")
    subparser = parser.add_subparsers(title="Commands")

    def run_worker(args: argparse.Namespace) -> Callable[[], int | None]:
        target: str | None = args.queue
        require_group = False
        if target is None:
            target = os.getenv("QUEUE_GROUP")
            require_group = True
        if not target:
            return abort(
                "the worker needs a target: set QUEUE_GROUP, e.g., "
                f"QUEUE_GROUP={DEFAULT_GROUP_MARKER}mailings, "
                "or use --queue")
        interval: float | None = args.interval
        if interval is None:
            interval = to_float(os.getenv("INTERVAL"), default=5.0)
        display_welcome(args, "worker")
        try:
            return worker_start(
                config_file=args.config,
                target=target,
                require_group=require_group,
                interval=interval,
                count=args.count,
                handler=args.handler)
        except QueueGroupNamingError as err:
            return abort(f"{err}")

    subparser_worker = subparser.add_parser("worker")
    subparser_worker.set_defaults(func=run_worker)
    parse_args_worker(subparser_worker)

    def run_push(args: argparse.Namespace) -> Callable[[], int | None]:
        config = load_config_file(args.config)

        def execute() -> int | None:
            for item in args.items:
                config.push(args.queue, item)
            return None

        return execute

    subparser_push = subparser.add_parser("push")
    subparser_push.set_defaults(func=run_push)
    subparser_push.add_argument("queue", type=str, help="the queue")
    subparser_push.add_argument(
        "items", type=str, nargs="+", help="the items to append")

    def run_activate(args: argparse.Namespace) -> Callable[[], int | None]:
        config = load_config_file(args.config)

        def execute() -> int | None:
            config.activate(args.group, args.queue, args.parameter)
            return None

        return execute

    subparser_activate = subparser.add_parser("activate")
    subparser_activate.set_defaults(func=run_activate)
    subparser_activate.add_argument("group", type=str, help="the queue group")
    subparser_activate.add_argument("queue", type=str, help="the queue")
    subparser_activate.add_argument(
        "--parameter",
        type=float,
        default=1.0,
        help="the priority, selection probability, or speed of the queue")

    def run_info(args: argparse.Namespace) -> Callable[[], int | None]:
        config = load_config_file(args.config)

        def execute() -> int | None:
            print(json.dumps(config.group_info(args.group), indent=2))
            return None

        return execute

    subparser_info = subparser.add_parser("info")
    subparser_info.set_defaults(func=run_info)
    subparser_info.add_argument("group", type=str, help="the queue group")

    parser.add_argument(
        "--config",
        type=str,
        required=True,
        help="json config file")
    parser.add_argument(
        "--no-welcome",
        action="store_true",
        help="suppresses the welcome message")

    args = parser.parse_args()
    if not hasattr(args, "func"):
        parser.print_help()
        parser.exit(2)
    return args, args.func
