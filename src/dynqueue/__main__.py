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
"""Runs the dynqueue application."""


def run() -> None:
    """
    Parses the command line arguments and runs the corresponding app.
    """
    # pylint: disable=import-outside-toplevel
    import sys

    from dynqueue.app.args import parse_args

    args, func = parse_args()
    execute = func(args)
    ret = execute()
    sys.stderr.flush()
    sys.stdout.flush()
    if ret is None:
        return
    sys.exit(ret)


if __name__ == "__main__":
    run()
