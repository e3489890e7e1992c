# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import os
import shlex
import subprocess
from typing import Sequence

from provisioning._errors import ExternalCommandError


def run(command: Sequence[str], *, cwd=None):
    """Run command with the terminal attached; the operator sees its output."""
    _log(command)
    process = subprocess.run(command, cwd=cwd)
    if process.returncode != 0:
        raise ExternalCommandError(command, process.returncode)


def output(command: Sequence[str], *, cwd=None) -> str:
    _log(command)
    process = subprocess.run(command, cwd=cwd, stdout=subprocess.PIPE, stdin=subprocess.DEVNULL)
    if process.returncode != 0:
        raise ExternalCommandError(command, process.returncode)
    return process.stdout.decode(errors='backslashreplace')


def _log(command):
    if os.name == 'nt':
        _logger.info("Run: %s", subprocess.list2cmdline(command))
    else:
        # shlex.join() only works with Iterable[str] and fails with PathLike
        command = [str(arg) if isinstance(arg, os.PathLike) else arg for arg in command]
        _logger.info("Run: %s", shlex.join(command))


_logger = logging.getLogger(__name__)
