# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import fnmatch
import logging
import re
import shlex
import socket
from configparser import ConfigParser
from pathlib import Path
from typing import Mapping
from typing import Optional
from typing import Sequence

from provisioning._errors import ConfigurationError

_defaults = {
    'repository': '',
    'repository_url': 'https://github.com',
    'remote': 'origin',
    'cache_file': '.provision-cache',
    'notification_url': '',
    'notification_token_file': '',
    'ansible_playbook': 'ansible-playbook',
    'ansible': 'ansible',
    }


class Settings:
    """Workstation and repository settings that do not change between runs.

    >>> settings = Settings({'repository': 'acme/infra'})
    >>> settings.repository(), settings.remote(), settings.ansible_playbook()
    ('acme/infra', 'origin', ['ansible-playbook'])
    >>> Settings({'repository': 'infra'}).repository()  # doctest: +IGNORE_EXCEPTION_DETAIL
    Traceback (most recent call last):
    ...
    provisioning._errors.ConfigurationError: repository must be of format owner/name, got 'infra'
    """

    def __init__(self, values: Mapping[str, str]):
        unknown = set(values) - set(_defaults)
        if unknown:
            raise ConfigurationError(f"Unknown settings: {', '.join(sorted(unknown))}")
        self._values = {**_defaults, **values}

    @classmethod
    def read(cls, root: Path, extra: Optional[Path] = None) -> 'Settings':
        paths = [root / 'provisioning.ini', Path('~/.config/provisioning.ini').expanduser()]
        if extra is not None:
            if not extra.exists():
                raise ConfigurationError(f"Settings file {extra} does not exist")
            paths.append(extra)
        return cls(_read_config(paths))

    def repository(self) -> str:
        repository = self._values['repository']
        if re.fullmatch(r'[^/]+/[^/]+', repository) is None:
            raise ConfigurationError(f"repository must be of format owner/name, got {repository!r}")
        return repository

    def repository_url(self) -> str:
        return self._values['repository_url']

    def remote(self) -> str:
        return self._values['remote']

    def cache_file(self, root: Path) -> Path:
        return root / self._values['cache_file']

    def notification_url(self) -> str:
        return self._values['notification_url']

    def notification_token(self) -> str:
        token_file = self._values['notification_token_file']
        if not token_file:
            return ''
        path = Path(token_file).expanduser()
        try:
            return path.read_text(encoding='ascii').strip('\n ')
        except FileNotFoundError:
            raise ConfigurationError(f"Notification token file {path} does not exist")

    def ansible_playbook(self) -> Sequence[str]:
        return shlex.split(self._values['ansible_playbook'])

    def ansible(self) -> Sequence[str]:
        return shlex.split(self._values['ansible'])


def _read_config(paths: Sequence[Path]) -> Mapping[str, str]:
    """Merge files; later files and host sections override.

    Section "defaults" applies everywhere.
    Other section names are masks of workstation host names, e.g. "[ci-*]".
    """
    host = socket.gethostname()
    config = {}
    for path in paths:
        config_parser = ConfigParser(interpolation=None)
        config_parser.read(path, encoding='utf-8')
        sections = sorted(config_parser.sections(), key=lambda s: s != 'defaults')
        for section in sections:
            if section == 'defaults' or fnmatch.fnmatch(host, section):
                _logger.info("Settings %s: section %s: read", path, section)
                config.update(config_parser.items(section))
            else:
                _logger.debug("Settings %s: section %s: skip", path, section)
    return config


_logger = logging.getLogger(__name__)
