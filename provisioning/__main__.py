# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import sys
from argparse import ArgumentParser
from pathlib import Path

from provisioning._errors import ProvisioningError
from provisioning._git import Git
from provisioning._logging import init_logging
from provisioning._notification import TeamInboxNotifier
from provisioning._operator import ConsoleOperator
from provisioning._operator import InteractivePathPrompt
from provisioning._orchestrator import Provisioning
from provisioning._run_config import Environment
from provisioning._settings import Settings

_tasks = {
    'provision': Provisioning.provision,
    'provision:list': Provisioning.list_provisions,
    'provision:command': Provisioning.command_loop,
    'provision:hostvars': Provisioning.print_hostvars,
    }


def main(args):
    parser = ArgumentParser(description="provision current release branch with Ansible")
    parser.add_argument('task', choices=list(_tasks), help="what to do")
    parser.add_argument(
        '--root',
        default='.',
        type=lambda v: Path(v).absolute(),
        help="project dir with playbooks/ and inventories/, default: current dir")
    parser.add_argument(
        '--settings',
        type=Path,
        help="extra settings file on top of provisioning.ini files")
    parsed_args = parser.parse_args(args)
    try:
        environment = Environment.from_os_environ()
        init_logging(parsed_args.task, environment.get('VERBOSE') == '1')
        settings = Settings.read(parsed_args.root, parsed_args.settings)
        operator = ConsoleOperator()
        provisioning = Provisioning(
            root=parsed_args.root,
            settings=settings,
            environment=environment,
            operator=operator,
            path_prompt=InteractivePathPrompt(operator),
            git=Git(settings.remote(), parsed_args.root),
            notifier=_make_notifier(settings),
            )
        _tasks[parsed_args.task](provisioning)
    except ProvisioningError as e:
        _logger.debug("Fatal error", exc_info=e)
        print(f"{e.__class__.__name__}: {e}", file=sys.stderr)
        return 10
    except (KeyboardInterrupt, EOFError):
        print("Interrupted", file=sys.stderr)
        return 130
    return 0


def _make_notifier(settings: Settings):
    if not settings.notification_url():
        return None
    # Links in notifications point to the repository.
    settings.repository()
    return TeamInboxNotifier(settings.notification_url(), settings.notification_token())


def cli():
    sys.exit(main(sys.argv[1:]))


_logger = logging.getLogger(__name__)

if __name__ == '__main__':
    cli()
