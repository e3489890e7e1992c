# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import re
from datetime import datetime
from pathlib import PurePath
from typing import Optional


class ProvisionTag:
    """Name of a version control tag that records one provisioning run.

    >>> tag = ProvisionTag(datetime(2024, 3, 7, 9, 5, 42), 'site', 'staging', 'alice')
    >>> tag.encode()
    'provision_2024_03_07_09_05_site_staging_alice'
    >>> ProvisionTag.decode('provision_2024_03_07_09_05_site_staging_alice') == tag
    True
    >>> ProvisionTag.decode('provision_2024_03_07_09_site_staging_alice') is None
    True
    >>> ProvisionTag.decode('v1.2.3') is None
    True
    """

    _prefix = 'provision'
    _tag_re = re.compile(
        r'provision_(\d{4})_(\d{2})_(\d{2})_(\d{2})_(\d{2})'
        r'_([^_\s]+)_([^_\s]+)_([^_\s]+)')

    def __init__(self, time: datetime, playbook: str, inventory: str, user: str):
        for segment in playbook, inventory, user:
            if not is_valid_segment(segment):
                raise ValueError(
                    f"Tag segment must be non-empty and free of underscores and spaces: {segment!r}")
        self.time = time.replace(second=0, microsecond=0)
        self.playbook = playbook
        self.inventory = inventory
        self.user = user

    @classmethod
    def for_run(cls, time: datetime, playbook: PurePath, inventory: PurePath, user: str) -> 'ProvisionTag':
        return cls(time, short_name(playbook), short_name(inventory), user)

    def __repr__(self):
        return f'<{ProvisionTag.__name__} {self.encode()}>'

    def __eq__(self, other):
        if not isinstance(other, ProvisionTag):
            return NotImplemented
        return self.encode() == other.encode()

    def __hash__(self):
        return hash(self.encode())

    def encode(self) -> str:
        return '_'.join([
            self._prefix,
            self.time.strftime('%Y_%m_%d_%H_%M'),
            self.playbook,
            self.inventory,
            self.user,
            ])

    @classmethod
    def decode(cls, name: str) -> Optional['ProvisionTag']:
        """Parse tag name; tags of other origin give None.

        >>> ProvisionTag.decode('provision_2024_13_07_09_05_site_staging_alice') is None
        True
        >>> ProvisionTag.decode('provision_2024_03_07_09_05_site_web_staging_alice') is None
        True
        >>> ProvisionTag.decode('provision_2024_03_O7_09_05_site_staging_alice') is None
        True
        """
        match = cls._tag_re.fullmatch(name)
        if match is None:
            return None
        [year, month, day, hour, minute, playbook, inventory, user] = match.groups()
        try:
            time = datetime(int(year), int(month), int(day), int(hour), int(minute))
        except ValueError:
            return None
        return cls(time, playbook, inventory, user)

    def describe(self) -> str:
        return f'{self.time.isoformat(timespec="seconds")} {self.playbook}@{self.inventory} by {self.user}'


def short_name(path: PurePath) -> str:
    """File name without directory and extension.

    >>> short_name(PurePath('playbooks/web/site.yml'))
    'site'
    >>> short_name(PurePath('inventories/production.ini'))
    'production'
    """
    return PurePath(path).stem


def is_valid_segment(segment: str) -> bool:
    return bool(segment) and re.fullmatch(r'[^_\s]+', segment) is not None
