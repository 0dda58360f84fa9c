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
"""Starts workers from the command line."""
import threading
from collections.abc import Callable
from typing import cast

from dynqueue.system.config.config import Config
from dynqueue.system.config.loader import ConfigJSON, load_config
from dynqueue.system.util import json_read
from dynqueue.system.worker.handler import JobHandler
from dynqueue.system.worker.loader import load_job_handler


def load_config_file(config_file: str) -> Config:
    """
    Loads the configuration from a JSON file.

    Args:
        config_file (str): The file name.

    Raises:
        ValueError: If the file is not a valid configuration.

    Returns:
        Config: The configuration.
    """
    with open(config_file, "r", encoding="utf-8") as fin:
        config_obj = cast(ConfigJSON, json_read(fin.read()))
    return load_config(config_obj)


def worker_start(
        *,
        config_file: str,
        target: str,
        require_group: bool,
        interval: float,
        count: int,
        handler: str | None) -> Callable[[], int | None]:
    """
    Load configuration and create workers.

    Args:
        config_file (str): The configuration file.
        target (str): A queue name or a group reference.
        require_group (bool): Whether the target must be a group reference.
        interval (float): Seconds to wait for new items. If not positive,
            the workers stop once no more items are available.
        count (int): The number of worker threads.
        handler (str | None): Overrides the configured job handler with a
            plugin module.

    Raises:
        QueueGroupNamingError: If a group reference is required but the
            target is a plain queue name.

    Returns:
        Callable[[], int | None]: The function to execute the actual work.
            If its result is not None, then the integer should be used
            as exit code.
    """
    if count < 1:
        raise ValueError(f"invalid worker count: {count}")
    config = load_config_file(config_file)
    logger = config.get_logger()
    job_handler: JobHandler
    if handler is not None:
        job_handler = load_job_handler(
            {"name": handler}, logger)  # type: ignore[typeddict-item]
    else:
        try:
            job_handler = config.get_job_handler()
        except ValueError:
            job_handler = load_job_handler({"name": "log"}, logger)
    workers = [
        config.create_worker(
            target, require_group=require_group, handler=job_handler)
        for _ in range(count)
    ]

    def execute() -> int | None:
        if len(workers) == 1:
            workers[0].work(interval)
            return None
        threads = [
            threading.Thread(
                target=worker.work,
                args=(interval,),
                daemon=False)
            for worker in workers
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        return None

    return execute
