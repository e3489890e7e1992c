# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping
from typing import MutableMapping
from typing import Optional
from typing import Sequence

from provisioning._errors import ConfigurationError
from provisioning._errors import UnsupportedVariable
from provisioning._operator import PathPrompt

SUPPORTED_VARIABLES = ('USER', 'VERBOSE', 'PREVIEW', 'UNSAFE_ARGS', 'PLAYBOOK', 'INVENTORY', 'BRANCH')
CACHED_VARIABLES = ('USER', 'VERBOSE', 'PREVIEW', 'UNSAFE_ARGS', 'PLAYBOOK', 'INVENTORY')
DEFAULT_BRANCH = 'master'


class Environment:
    """Run inputs; only the supported variables exist here.

    >>> env = Environment({'USER': 'alice'})
    >>> env.get('USER'), env.get('PREVIEW')
    ('alice', None)
    >>> env.get('HOME')  # doctest: +IGNORE_EXCEPTION_DETAIL
    Traceback (most recent call last):
    ...
    provisioning._errors.UnsupportedVariable: Attempt to access unsupported env var HOME
    """

    def __init__(self, values: Mapping[str, str]):
        self._values: MutableMapping[str, str] = {}
        self.update(values)

    @classmethod
    def from_os_environ(cls) -> 'Environment':
        return cls({name: os.environ[name] for name in SUPPORTED_VARIABLES if name in os.environ})

    def get(self, name: str) -> Optional[str]:
        if name not in SUPPORTED_VARIABLES:
            raise UnsupportedVariable(name)
        return self._values.get(name)

    def update(self, values: Mapping[str, str]):
        for name in values:
            if name not in SUPPORTED_VARIABLES:
                raise UnsupportedVariable(name)
        self._values.update(values)

    def cacheable(self) -> Mapping[str, str]:
        return {name: self._values[name] for name in CACHED_VARIABLES if name in self._values}


@dataclass(frozen=True)
class RunConfig:
    playbook: Path
    inventory: Path
    user: str
    verbose: bool
    preview: bool
    unsafe_args: str
    release_branch: str

    @classmethod
    def resolve(
            cls,
            environment: Environment,
            path_prompt: PathPrompt,
            root: Path,
            resolved: MutableMapping[str, str],
            ) -> 'RunConfig':
        """Build config once; interactively chosen paths are put to resolved."""
        user = environment.get('USER')
        if not user:
            raise ConfigurationError("Missing USER env var")
        config = cls(
            playbook=resolve_playbook(environment, path_prompt, root, resolved),
            inventory=resolve_inventory(environment, path_prompt, root, resolved),
            user=user,
            verbose=environment.get('VERBOSE') == '1',
            preview=environment.get('PREVIEW') == '1',
            unsafe_args=environment.get('UNSAFE_ARGS') or '',
            release_branch=environment.get('BRANCH') or DEFAULT_BRANCH,
            )
        _logger.info("Resolved %r", config)
        return config

    def verbosity_args(self) -> Sequence[str]:
        return ['-vvvv'] if self.verbose else []

    def unsafe_arg_list(self) -> Sequence[str]:
        return self.unsafe_args.split()


def resolve_playbook(environment, path_prompt, root, resolved) -> Path:
    return _pick_file(
        environment, path_prompt, resolved,
        "Playbook? ", var='PLAYBOOK', directory=root / 'playbooks', extension='.yml')


def resolve_inventory(environment, path_prompt, root, resolved) -> Path:
    return _pick_file(
        environment, path_prompt, resolved,
        "Inventory? ", var='INVENTORY', directory=root / 'inventories', extension='.ini')


def _pick_file(
        environment: Environment,
        path_prompt: PathPrompt,
        resolved: MutableMapping[str, str],
        message: str,
        *,
        var: str,
        directory: Path,
        extension: str,
        ) -> Path:
    value = environment.get(var)
    if value is None:
        value = path_prompt.resolve(message, directory, extension).strip()
        if value:
            resolved[var] = value
    if not value:
        raise ConfigurationError(f"Missing {var} env var")
    path = expand_path(value, directory, extension)
    if not path.is_file():
        raise ConfigurationError(f"{var} file {path} does not exist")
    return path


def expand_path(value: str, directory: Path, extension: str) -> Path:
    """Turn a short name into a path to the file.

    >>> expand_path('site', Path('/repo/playbooks'), '.yml').as_posix()
    '/repo/playbooks/site.yml'
    >>> expand_path('web/site.yml', Path('/repo/playbooks'), '.yml').name
    'site.yml'
    >>> expand_path('staging', Path('/repo/inventories'), '.ini').as_posix()
    '/repo/inventories/staging.ini'
    """
    if '/' in value:
        path = Path(value).expanduser().absolute()
    else:
        path = directory / value
    if not path.suffix:
        path = path.with_name(path.name + extension)
    return path


_logger = logging.getLogger(__name__)
