# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
"""Run Ansible playbooks against inventories with safety gating.

Provisioning is the process of creating and setting up IT infrastructure.
See: https://www.redhat.com/en/topics/automation/what-is-provisioning

Provisioning is intended to be run manually, from a workstation or a CI agent,
by someone who has enough permissions to do so:

    USER=alice PLAYBOOK=site INVENTORY=staging python -m provisioning provision

A run is either safe or unsafe. A playbook declares it with the safe_mode
variable in every play. If it doesn't, production and staging inventories
are safe and the rest are not.

In safe mode, what is played must be what is on the release branch:
the branch is checked out, nothing is modified, it is pulled and pushed.
A successful safe run is recorded as a Git tag and announced to the team.
Tags are the audit trail; "provision:list" shows them.

In unsafe mode, nothing is checked and extra arguments from UNSAFE_ARGS
are passed to ansible-playbook as is. It's intended for development
inventories and maintenance playbooks.

With PREVIEW=1, the playbook is first run with --check --diff.
Nothing is applied until the operator types YES.

If a run ends before the playbook was played, its variables are saved.
The next run offers to reuse them.
"""
from provisioning._errors import ConfigurationError
from provisioning._errors import ExternalCommandError
from provisioning._errors import GitStateError
from provisioning._errors import HostSetNotFound
from provisioning._errors import NotificationError
from provisioning._errors import ParseError
from provisioning._errors import ProvisioningError
from provisioning._errors import UnsupportedVariable
from provisioning._inventory import Host
from provisioning._inventory import InventoryFile
from provisioning._orchestrator import Provisioning
from provisioning._provision_tag import ProvisionTag
from provisioning._run_config import Environment
from provisioning._run_config import RunConfig
from provisioning._run_state import RunState
from provisioning._safety import SafeMode
from provisioning._safety import SafeModeDecision
from provisioning._safety import decide_safe_mode

__all__ = [
    'ConfigurationError',
    'Environment',
    'ExternalCommandError',
    'GitStateError',
    'Host',
    'HostSetNotFound',
    'InventoryFile',
    'NotificationError',
    'ParseError',
    'ProvisionTag',
    'Provisioning',
    'ProvisioningError',
    'RunConfig',
    'RunState',
    'SafeMode',
    'SafeModeDecision',
    'UnsupportedVariable',
    'decide_safe_mode',
    ]
