# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
from typing import Sequence


class ProvisioningError(Exception):
    pass


class ConfigurationError(ProvisioningError):
    pass


class UnsupportedVariable(ConfigurationError):

    def __init__(self, name: str):
        super().__init__(f"Attempt to access unsupported env var {name}")
        self.name = name


class GitStateError(ProvisioningError):
    pass


class ParseError(ProvisioningError):
    pass


class ExternalCommandError(ProvisioningError):

    def __init__(self, command: Sequence[str], returncode: int):
        self.command = [str(arg) for arg in command]
        super().__init__(f"Command {' '.join(self.command)!r} exited with code {returncode}")
        self.returncode = returncode


class HostSetNotFound(ProvisioningError, LookupError):

    def __init__(self, name: str):
        super().__init__(f"No host set {name!r} in inventory")
        self.name = name


class NotificationError(ProvisioningError):
    pass
