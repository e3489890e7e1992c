# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import json
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import MutableMapping
from typing import Optional
from typing import Sequence

import yaml

from provisioning import _command
from provisioning._argument_cache import ArgumentCache
from provisioning._errors import ConfigurationError
from provisioning._errors import ExternalCommandError
from provisioning._errors import NotificationError
from provisioning._errors import ParseError
from provisioning._git import Git
from provisioning._git import GitSyncGuard
from provisioning._inventory import InventoryFile
from provisioning._notification import ProvisionReport
from provisioning._notification import TeamInboxNotifier
from provisioning._operator import Operator
from provisioning._operator import PathPrompt
from provisioning._player import Player
from provisioning._provision_tag import ProvisionTag
from provisioning._provision_tag import short_name
from provisioning._run_config import Environment
from provisioning._run_config import RunConfig
from provisioning._run_config import resolve_inventory
from provisioning._run_state import RunProgress
from provisioning._run_state import RunState
from provisioning._safety import SafeModeDecision
from provisioning._safety import decide_safe_mode
from provisioning._safety import load_plays
from provisioning._settings import Settings


class Provisioning:
    """Run playbooks the way it is safe to run them.

    A full run is load_argument_cache, resolve_config, sync_git, play and
    after_play. Whatever way it ends, the argument cache is settled:
    a run that did not play leaves its variables for the next invocation.
    """

    def __init__(
            self,
            root: Path,
            settings: Settings,
            environment: Environment,
            operator: Operator,
            path_prompt: PathPrompt,
            git: Git,
            notifier: Optional[TeamInboxNotifier] = None,
            ):
        self._root = root
        self._settings = settings
        self._environment = environment
        self._operator = operator
        self._path_prompt = path_prompt
        self._git = git
        self._notifier = notifier
        self._argument_cache = ArgumentCache(settings.cache_file(root))
        self._started_at = datetime.now()
        self._started_at_monotonic = time.monotonic()
        self._progress = RunProgress()
        self._interactively_resolved: MutableMapping[str, str] = {}
        self._config: Optional[RunConfig] = None
        self._decision: Optional[SafeModeDecision] = None
        self._execution_tags: Sequence[str] = []

    def state(self) -> RunState:
        return self._progress.state()

    def provision(self):
        try:
            self.load_argument_cache()
            self.resolve_config()
            self.sync_git()
            self.play()
            self.after_play()
        finally:
            self.settle_argument_cache()

    def load_argument_cache(self):
        self._argument_cache.offer(self._operator, self._environment)

    def resolve_config(self):
        self._config = RunConfig.resolve(
            self._environment, self._path_prompt, self._root, self._interactively_resolved)
        self._decision = decide_safe_mode(load_plays(self._config.playbook), self._config.inventory)
        if self._decision.is_safe():
            self._operator.tell("Safe mode: the release branch is synced, the run is tagged")
        else:
            self._operator.tell("Unsafe mode: no branch checks, no tags")

    def sync_git(self):
        [config, decision] = self._resolved()
        if decision.is_safe():
            try:
                self._make_tag(config)
            except ValueError as e:
                raise ConfigurationError(f"Cannot name the provision tag for this run: {e}")
        GitSyncGuard(self._git, config.release_branch).ensure_synced(decision.is_safe())
        self._progress.advance(RunState.SYNCED)

    def play(self):
        [config, decision] = self._resolved()
        player = Player(config, decision, self._operator, self._settings.ansible_playbook())
        self._execution_tags = player.select_tags()
        player.execute(self._execution_tags, self._progress)

    def after_play(self):
        [config, decision] = self._resolved()
        if not self._progress.reached(RunState.PLAYED):
            _logger.info("Not played, nothing to record")
            return
        if not decision.is_safe():
            _logger.info("Unsafe mode: no tag, no notification")
            return
        tag = self._make_tag(config).encode()
        commit = self._git.current_commit()
        self._git.create_tag(tag)
        self._git.push_tag(tag)
        self._progress.advance(RunState.TAGGED)
        self._operator.tell(f"Tagged {tag}")
        self._notify(config, tag, commit)

    def settle_argument_cache(self):
        if self._progress.reached(RunState.PLAYED):
            self._argument_cache.discard()
            return
        variables = {**self._environment.cacheable(), **self._interactively_resolved}
        if self._argument_cache.save(variables):
            self._operator.tell("Saved variables of this run for the next one")

    def list_provisions(self):
        for name in self._git.tags('provision*'):
            tag = ProvisionTag.decode(name)
            if tag is None:
                _logger.debug("Not a provision tag: %s", name)
                continue
            self._operator.tell(tag.describe())

    def command_loop(self):
        """Run ad hoc shell commands on a host set until EOF or Ctrl+C."""
        inventory_path = self._resolve_inventory()
        inventory = InventoryFile.read(inventory_path)
        self._operator.tell("Host sets: " + ' '.join(inventory.host_set_names()))
        host_set = self._operator.ask("Host set? ").strip()
        inventory.host_set(host_set)
        while True:
            try:
                line = self._operator.ask(f'{host_set}> ')
            except (EOFError, KeyboardInterrupt):
                self._operator.tell('')
                return
            if not line.strip():
                continue
            try:
                _command.run([
                    *self._settings.ansible(),
                    host_set,
                    '-i', str(inventory_path),
                    *self._verbosity_args(),
                    '-m', 'shell',
                    '-a', line,
                    ])
            except ExternalCommandError as e:
                _logger.warning("Ad hoc command failed: %s", e)
                self._operator.tell(str(e))

    def print_hostvars(self):
        inventory_path = self._resolve_inventory()
        inventory = InventoryFile.read(inventory_path)
        host_set_names = inventory.host_set_names()
        if not host_set_names:
            raise ConfigurationError(f"No host sets in {inventory_path}")
        hosts = inventory.host_set(host_set_names[0])
        if not hosts:
            raise ConfigurationError(f"No hosts in host set {host_set_names[0]!r} of {inventory_path}")
        out = _command.output([
            *self._settings.ansible(),
            hosts[0].name,
            '-i', str(inventory_path),
            '-m', 'debug',
            '-a', 'var=hostvars[inventory_hostname]',
            ])
        self._operator.tell(yaml.safe_dump(parse_ad_hoc_result(out), default_flow_style=False))

    def _resolve_inventory(self) -> Path:
        return resolve_inventory(
            self._environment, self._path_prompt, self._root, self._interactively_resolved)

    def _verbosity_args(self):
        return ['-vvvv'] if self._environment.get('VERBOSE') == '1' else []

    def _resolved(self):
        if self._config is None or self._decision is None:
            raise RuntimeError("Config is not resolved yet")
        return self._config, self._decision

    def _make_tag(self, config: RunConfig) -> ProvisionTag:
        return ProvisionTag.for_run(self._started_at, config.playbook, config.inventory, config.user)

    def _notify(self, config: RunConfig, tag: str, commit: str):
        if self._notifier is None:
            _logger.info("No notification URL configured, skip notification")
            return
        duration_sec = time.monotonic() - self._started_at_monotonic
        try:
            report = ProvisionReport(
                repository_url=self._settings.repository_url(),
                repository=self._settings.repository(),
                playbook=short_name(config.playbook),
                inventory=short_name(config.inventory),
                user=config.user,
                commit=commit,
                tag=tag,
                duration_sec=duration_sec,
                execution_tags=self._execution_tags,
                )
            self._notifier.notify(report)
        except (ConfigurationError, NotificationError) as e:
            _logger.warning("Notification failed: %s", e)
            self._operator.tell(f"Could not notify the team: {e}")
            return
        self._progress.advance(RunState.NOTIFIED)
        self._operator.tell("Notified the team.")
        self._operator.tell(f"Total runtime was {report.duration()}.")


def parse_ad_hoc_result(out: str):
    """Take the JSON part of an ansible ad hoc command result.

    >>> parse_ad_hoc_result('web1 | SUCCESS => {"hostvars[inventory_hostname]": {"role": "primary"}}')
    {'hostvars[inventory_hostname]': {'role': 'primary'}}
    """
    [_, separator, data] = out.partition('=>')
    if not separator:
        raise ParseError(f"Unexpected ansible output: {out!r}")
    try:
        return json.loads(data)
    except json.JSONDecodeError as e:
        raise ParseError(f"Cannot parse ansible output: {e}")


_logger = logging.getLogger(__name__)
