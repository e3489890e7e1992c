# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
from enum import IntEnum


class RunState(IntEnum):
    INITIALIZED = 0
    SYNCED = 1
    PLAYED_DRY = 2
    PLAYED = 3
    TAGGED = 4
    NOTIFIED = 5


class RunProgress:
    """Linear progress of a run; a state is never entered twice.

    >>> progress = RunProgress()
    >>> progress.advance(RunState.SYNCED)
    >>> progress.advance(RunState.PLAYED)
    >>> progress.reached(RunState.PLAYED_DRY), progress.reached(RunState.TAGGED)
    (True, False)
    >>> progress.advance(RunState.SYNCED)
    Traceback (most recent call last):
    ...
    RuntimeError: Cannot go from PLAYED to SYNCED
    """

    def __init__(self):
        self._state = RunState.INITIALIZED

    def __repr__(self):
        return f'<{RunProgress.__name__} {self._state.name}>'

    def state(self) -> RunState:
        return self._state

    def advance(self, state: RunState):
        if state <= self._state:
            raise RuntimeError(f"Cannot go from {self._state.name} to {state.name}")
        _logger.info("Run state: %s -> %s", self._state.name, state.name)
        self._state = state

    def reached(self, state: RunState) -> bool:
        return self._state >= state


_logger = logging.getLogger(__name__)
