# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
"""Decide whether a run must be guarded.

In safe mode, the release branch must be clean and synced before playing,
unsafe arguments are dropped and the run is tagged and announced.
"""
import logging
from enum import Enum
from pathlib import Path
from typing import Any
from typing import Mapping
from typing import Sequence

import yaml

from provisioning._errors import ParseError


class SafeMode(Enum):
    UNSAFE = 'unsafe'
    SAFE = 'safe'
    UNDETERMINED = 'undetermined'


class DecisionSource(Enum):
    PLAYBOOK = 'playbook'
    INVENTORY_NAME = 'inventory name'


class SafeModeDecision:

    def __init__(self, mode: SafeMode, source: DecisionSource, safe: bool):
        self.mode = mode
        self.source = source
        self._safe = safe

    def __repr__(self):
        return f'<{SafeModeDecision.__name__} {self.mode.value} from {self.source.value}: safe={self._safe}>'

    def is_safe(self) -> bool:
        return self._safe


def load_plays(playbook: Path) -> Sequence[Mapping[str, Any]]:
    try:
        with open(playbook, encoding='utf-8') as f:
            document = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ParseError(f"Cannot parse playbook {playbook}: {e}")
    if not isinstance(document, list):
        raise ParseError(f"Playbook {playbook} must be a list of plays")
    for play in document:
        if not isinstance(play, dict):
            raise ParseError(f"Playbook {playbook}: play must be a mapping, got {play!r}")
        if not isinstance(play.get('vars') or {}, dict):
            raise ParseError(f"Playbook {playbook}: vars must be a mapping in play {play.get('name')!r}")
    return document


def decide_safe_mode(plays: Sequence[Mapping[str, Any]], inventory: Path) -> SafeModeDecision:
    """Take safe_mode from the playbook vars or guess it from the inventory.

    >>> def play(**variables):
    ...     return {'hosts': 'all', 'vars': variables}
    >>> decide_safe_mode([play(safe_mode=False), play(safe_mode=False)], Path('production.ini'))
    <SafeModeDecision unsafe from playbook: safe=False>
    >>> decide_safe_mode([play(safe_mode=True), play(safe_mode=False)], Path('development.ini'))
    <SafeModeDecision safe from playbook: safe=True>
    >>> decide_safe_mode([play(safe_mode=True), play()], Path('development.ini'))
    <SafeModeDecision undetermined from inventory name: safe=False>
    >>> decide_safe_mode([play(), {'hosts': 'db'}], Path('inventories/staging.ini'))
    <SafeModeDecision undetermined from inventory name: safe=True>
    >>> decide_safe_mode([play(safe_mode=False), play()], Path('inventories/vagrant.ini'))
    <SafeModeDecision undetermined from inventory name: safe=False>
    >>> decide_safe_mode([], Path('inventories/production.ini'))
    <SafeModeDecision undetermined from inventory name: safe=True>
    """
    declared = [play['vars']['safe_mode'] for play in plays if 'safe_mode' in (play.get('vars') or {})]
    if not plays or len(declared) < len(plays):
        production_like = 'production' in str(inventory) or 'staging' in str(inventory)
        decision = SafeModeDecision(SafeMode.UNDETERMINED, DecisionSource.INVENTORY_NAME, production_like)
    elif all(value is False for value in declared):
        decision = SafeModeDecision(SafeMode.UNSAFE, DecisionSource.PLAYBOOK, False)
    else:
        decision = SafeModeDecision(SafeMode.SAFE, DecisionSource.PLAYBOOK, True)
    _logger.info("Safe mode for inventory %s: %r", inventory, decision)
    return decision


_logger = logging.getLogger(__name__)
