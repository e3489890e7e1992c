# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import re
from typing import Collection
from typing import Sequence

from provisioning import _command
from provisioning._operator import Operator
from provisioning._provision_tag import short_name
from provisioning._run_config import RunConfig
from provisioning._run_state import RunProgress
from provisioning._run_state import RunState
from provisioning._safety import SafeModeDecision


class Player:

    def __init__(
            self,
            config: RunConfig,
            decision: SafeModeDecision,
            operator: Operator,
            ansible_playbook: Sequence[str] = ('ansible-playbook',),
            ):
        self._config = config
        self._decision = decision
        self._operator = operator
        self._ansible_playbook = list(ansible_playbook)

    def list_tags(self) -> Collection[str]:
        out = _command.output([*self._base_command(), '--list-tags'])
        return parse_listed_tags(out)

    def select_tags(self) -> Sequence[str]:
        available = self.list_tags()
        if not available:
            _logger.info("Playbook %s declares no tags", self._config.playbook)
            return []
        self._operator.tell("Tags: " + ' '.join(available))
        while True:
            answer = self._operator.ask("Tags to run (space separated, empty for all)? ")
            selected = answer.split()
            unknown = [tag for tag in selected if tag not in available]
            if not unknown:
                _logger.info("Selected tags: %r", selected)
                return selected
            self._operator.tell("Unknown tags: " + ' '.join(unknown))

    def command(self, tags: Sequence[str], *, dry: bool = False) -> Sequence[str]:
        return [
            *self._base_command(),
            *self._config.verbosity_args(),
            *(['--tags', ','.join(tags)] if tags else []),
            *self._unsafe_args(),
            *(['--check', '--diff'] if dry else []),
            ]

    def play(self, tags: Sequence[str], *, dry: bool = False):
        _command.run(self.command(tags, dry=dry))

    def execute(self, tags: Sequence[str], progress: RunProgress):
        """Play, with a dry run and confirmation first in preview mode.

        A refused confirmation ends the step without playing.
        """
        if self._config.preview:
            self.play(tags, dry=True)
            progress.advance(RunState.PLAYED_DRY)
            confirmed = self._operator.confirms([
                f"Provisioning playbook {short_name(self._config.playbook)!r} with "
                f"inventory {short_name(self._config.inventory)!r} now?",
                ], 'YES')
            if not confirmed:
                self._operator.tell("Have it your way, then.")
                _logger.info("Not confirmed, not playing")
                return
        self.play(tags)
        progress.advance(RunState.PLAYED)

    def _base_command(self):
        return [*self._ansible_playbook, str(self._config.playbook), '-i', str(self._config.inventory)]

    def _unsafe_args(self):
        if self._decision.is_safe():
            if self._config.unsafe_args:
                _logger.warning("Safe mode: ignore UNSAFE_ARGS %r", self._config.unsafe_args)
            return []
        return self._config.unsafe_arg_list()


def parse_listed_tags(out: str) -> Sequence[str]:
    """Collect task tags from ansible-playbook --list-tags output.

    >>> parse_listed_tags('''
    ... playbook: playbooks/site.yml
    ...
    ...   play #1 (web): web\tTAGS: []
    ...       TASK TAGS: [nginx, certs]
    ...
    ...   play #2 (db): db\tTAGS: []
    ...       TASK TAGS: [certs, postgres]
    ... ''')
    ['nginx', 'certs', 'postgres']
    >>> parse_listed_tags('      TASK TAGS: []')
    []
    """
    result = {}
    for listed in re.findall(r'TASK TAGS: \[(.*?)\]', out):
        for tag in listed.split(','):
            tag = tag.strip()
            if tag:
                result[tag] = None
    return list(result)


_logger = logging.getLogger(__name__)
