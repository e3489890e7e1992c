# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
from pathlib import Path
from typing import Optional
from typing import Sequence

from provisioning import _command
from provisioning._errors import GitStateError


class Git:

    def __init__(self, remote: str = 'origin', work_tree: Optional[Path] = None):
        self._remote = remote
        self._work_tree = work_tree

    def __repr__(self):
        return f'<{Git.__name__} {self._work_tree or "."} remote={self._remote}>'

    def current_branch(self) -> str:
        return self._output('rev-parse', '--abbrev-ref', 'HEAD').strip()

    def current_commit(self) -> str:
        return self._output('rev-parse', 'HEAD').strip()

    def modified_files(self) -> Sequence[str]:
        return self._output('ls-files', '-m').splitlines()

    def pull(self, branch: str):
        self._run('pull', self._remote, branch)

    def push(self, branch: str):
        self._run('push', self._remote, branch)

    def tags(self, pattern: str) -> Sequence[str]:
        return self._output('tag', '--list', pattern).splitlines()

    def create_tag(self, name: str):
        self._run('tag', name)

    def push_tag(self, name: str):
        self._run('push', self._remote, '-f', name)

    def _run(self, *args: str):
        _command.run(['git', *args], cwd=self._work_tree)

    def _output(self, *args: str) -> str:
        return _command.output(['git', *args], cwd=self._work_tree)


class GitSyncGuard:
    """Make sure what is played is what is pushed to the release branch."""

    def __init__(self, git: Git, release_branch: str):
        self._git = git
        self._release_branch = release_branch

    def ensure_synced(self, safe: bool):
        if not safe:
            _logger.info("Unsafe mode: skip syncing branch %s", self._release_branch)
            return
        current_branch = self._git.current_branch()
        if current_branch != self._release_branch:
            raise GitStateError(
                f"Checkout of branch {self._release_branch} required for provisioning, "
                f"{current_branch} is checked out")
        _logger.info("Branch %s is checked out", self._release_branch)
        modified = self._git.modified_files()
        if modified:
            raise GitStateError('\n'.join([
                "Found some modified files",
                "Commit these files first:",
                *modified,
                ]))
        _logger.info("No modified files")
        self._git.pull(self._release_branch)
        self._git.push(self._release_branch)


_logger = logging.getLogger(__name__)
