# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import html
import logging
from typing import Any
from typing import Mapping
from typing import Sequence

import requests

from provisioning._errors import NotificationError


class ProvisionReport:

    def __init__(
            self,
            repository_url: str,
            repository: str,
            playbook: str,
            inventory: str,
            user: str,
            commit: str,
            tag: str,
            duration_sec: float,
            execution_tags: Sequence[str],
            ):
        self._repository_url = repository_url.rstrip('/')
        self._repository = repository
        self._playbook = playbook
        self._inventory = inventory
        self._user = user
        self._commit = commit
        self._tag = tag
        self._duration_sec = duration_sec
        self._execution_tags = list(execution_tags)

    def subject(self) -> str:
        return f"Provisioned {self._repository}: {self._playbook} / {self._inventory}"

    def commit_url(self) -> str:
        return f'{self._repository_url}/{self._repository}/commit/{self._commit}'

    def tag_url(self) -> str:
        return f'{self._repository_url}/{self._repository}/releases/tag/{self._tag}'

    def duration(self) -> str:
        return '%0.2f seconds' % self._duration_sec

    def html_content(self) -> str:
        commit_link = _link(self.commit_url(), self._commit[:6])
        tag_link = _link(self.tag_url(), self._tag)
        if self._execution_tags:
            execution_tags = ', '.join(html.escape(t) for t in self._execution_tags)
        else:
            execution_tags = 'all'
        return (
            f"<p>Commit {commit_link}, tag {tag_link} was "
            f"provisioned via playbook <b>{html.escape(self._playbook)}</b> for "
            f"inventory <b>{html.escape(self._inventory)}</b> in {self.duration()}. "
            f"Tags: {execution_tags}.</p>")

    def as_dict(self) -> Mapping[str, Any]:
        return {
            'source': 'ansible',
            'from': {'name': 'Provisionaire', 'address': 'provisioning@localhost'},
            'subject': self.subject(),
            'content': self.html_content(),
            'tags': ['provision', self._user],
            }


class TeamInboxNotifier:
    """Post a message to the team inbox of the chat service."""

    def __init__(self, url: str, token: str):
        self._url = url
        self._token = token

    def __repr__(self):
        return f'<{TeamInboxNotifier.__name__} {self._url}>'

    def notify(self, report: ProvisionReport):
        _logger.debug("%r: Send %r", self, report.subject())
        try:
            response = requests.post(
                self._url,
                json=report.as_dict(),
                headers={'Authorization': f'Bearer {self._token}'},
                timeout=30,
                )
        except requests.RequestException as e:
            raise NotificationError(f"Caught {e.__class__.__name__}: {e}")
        if 200 <= response.status_code < 300:
            _logger.info("%r: Sent %r", self, report.subject())
        else:
            raise NotificationError(f"HTTP {response.status_code}: {response.text}")


def _link(url: str, text: str) -> str:
    return f'<a href="{html.escape(url)}">{html.escape(text)}</a>'


_logger = logging.getLogger(__name__)
