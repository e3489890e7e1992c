# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import json
import os
from pathlib import Path
from typing import Mapping

from provisioning._operator import Operator
from provisioning._run_config import CACHED_VARIABLES
from provisioning._run_config import Environment


class ArgumentCache:
    """Variables of a run that ended before its playbook was played.

    The file itself is a signal: it exists only after such a run.
    It is consumed exactly once: removed as soon as it is offered.
    There is no locking; concurrent runs race on the file,
    the first one to write it wins.
    """

    def __init__(self, path: Path):
        self._path = path

    def __repr__(self):
        return f'<{ArgumentCache.__name__} {self._path}>'

    def exists(self) -> bool:
        return self._path.exists()

    def offer(self, operator: Operator, environment: Environment):
        if not self._path.exists():
            _logger.debug("%r: Nothing cached", self)
            return
        try:
            variables = self.load()
        except (ValueError, OSError) as e:
            _logger.warning("%r: Cannot read: %s", self, e)
            operator.tell(f"Ignoring unreadable argument cache {self._path}: {e}")
        else:
            operator.tell("Found cached variables:")
            width = max((len(name) for name in variables), default=0)
            for name, value in sorted(variables.items()):
                operator.tell(f'{name:>{width}}: {value}')
            if operator.agrees("Use cached variables (y/n)? "):
                _logger.info("%r: Reuse %r", self, variables)
                environment.update(variables)
        self.discard()

    def load(self) -> Mapping[str, str]:
        variables = json.loads(self._path.read_text(encoding='utf-8'))
        if not isinstance(variables, dict):
            raise ValueError(f"Expected a mapping, got {type(variables).__name__}")
        return {
            name: value for name, value in variables.items()
            if name in CACHED_VARIABLES and isinstance(value, str)
            }

    def save(self, variables: Mapping[str, str]) -> bool:
        temp_path = self._path.with_name(f'{self._path.name}.{os.getpid()}.tmp')
        fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with open(fd, 'w', encoding='utf-8') as f:
            json.dump(dict(variables), f)
        try:
            os.link(temp_path, self._path)
        except FileExistsError:
            _logger.info("%r: Already exists, keep it", self)
            return False
        finally:
            temp_path.unlink()
        _logger.info("%r: Saved %r", self, variables)
        return True

    def discard(self):
        self._path.unlink(missing_ok=True)
        _logger.debug("%r: Removed", self)


_logger = logging.getLogger(__name__)
