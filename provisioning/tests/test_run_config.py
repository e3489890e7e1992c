# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import os
import unittest
from dataclasses import FrozenInstanceError
from pathlib import Path
from tempfile import TemporaryDirectory

from provisioning._errors import ConfigurationError
from provisioning._errors import UnsupportedVariable
from provisioning._operator import InteractivePathPrompt
from provisioning._run_config import Environment
from provisioning._run_config import RunConfig
from provisioning.tests._fake_operator import FakeOperator
from provisioning.tests._fake_operator import FakePathPrompt


class TestEnvironment(unittest.TestCase):

    def test_unknown_variable_rejected_at_construction(self):
        with self.assertRaises(UnsupportedVariable):
            Environment({'USER': 'alice', 'ANSIBLE_CONFIG': 'x.cfg'})

    def test_unknown_variable_rejected_at_access(self):
        with self.assertRaises(ConfigurationError):
            Environment({}).get('PATH')

    def test_unknown_variable_rejected_at_update(self):
        environment = Environment({})
        with self.assertRaises(UnsupportedVariable):
            environment.update({'HOME': '/root'})

    def test_from_os_environ_picks_supported(self):
        saved = os.environ.get('PREVIEW')
        os.environ['PREVIEW'] = '1'
        try:
            environment = Environment.from_os_environ()
        finally:
            if saved is None:
                del os.environ['PREVIEW']
            else:
                os.environ['PREVIEW'] = saved
        self.assertEqual(environment.get('PREVIEW'), '1')

    def test_branch_is_not_cached(self):
        environment = Environment({'USER': 'alice', 'BRANCH': 'release', 'VERBOSE': '1'})
        self.assertEqual(environment.cacheable(), {'USER': 'alice', 'VERBOSE': '1'})


class TestRunConfig(unittest.TestCase):

    def setUp(self):
        self._root_dir = TemporaryDirectory()
        self._root = Path(self._root_dir.name)
        self._root.joinpath('playbooks/web').mkdir(parents=True)
        self._root.joinpath('inventories').mkdir()
        self._root.joinpath('playbooks/site.yml').write_text('- hosts: all\n')
        self._root.joinpath('playbooks/web/nginx.yml').write_text('- hosts: web\n')
        self._root.joinpath('inventories/staging.ini').write_text('[web]\nhost1\n')

    def tearDown(self):
        self._root_dir.cleanup()

    def test_from_environment(self):
        resolved = {}
        config = RunConfig.resolve(
            Environment({
                'USER': 'alice',
                'PLAYBOOK': 'site',
                'INVENTORY': 'staging.ini',
                'VERBOSE': '1',
                'PREVIEW': '1',
                'UNSAFE_ARGS': '-e  debug=true\t--step',
                }),
            FakePathPrompt(),
            self._root,
            resolved,
            )
        self.assertEqual(config.playbook, self._root / 'playbooks/site.yml')
        self.assertEqual(config.inventory, self._root / 'inventories/staging.ini')
        self.assertEqual(config.user, 'alice')
        self.assertEqual(config.verbosity_args(), ['-vvvv'])
        self.assertTrue(config.preview)
        self.assertEqual(config.unsafe_arg_list(), ['-e', 'debug=true', '--step'])
        self.assertEqual(config.release_branch, 'master')
        self.assertEqual(resolved, {})

    def test_defaults(self):
        config = RunConfig.resolve(
            Environment({'USER': 'alice', 'PLAYBOOK': 'site', 'INVENTORY': 'staging', 'BRANCH': 'release'}),
            FakePathPrompt(),
            self._root,
            {},
            )
        self.assertEqual(config.verbosity_args(), [])
        self.assertFalse(config.preview)
        self.assertEqual(config.unsafe_arg_list(), [])
        self.assertEqual(config.release_branch, 'release')

    def test_immutable(self):
        config = RunConfig.resolve(
            Environment({'USER': 'alice', 'PLAYBOOK': 'site', 'INVENTORY': 'staging'}),
            FakePathPrompt(),
            self._root,
            {},
            )
        with self.assertRaises(FrozenInstanceError):
            config.user = 'bob'

    def test_path_with_slash(self):
        config = RunConfig.resolve(
            Environment({
                'USER': 'alice',
                'PLAYBOOK': str(self._root / 'playbooks/web/nginx'),
                'INVENTORY': 'staging',
                }),
            FakePathPrompt(),
            self._root,
            {},
            )
        self.assertEqual(config.playbook, self._root / 'playbooks/web/nginx.yml')

    def test_interactive_paths_are_remembered(self):
        resolved = {}
        prompt = FakePathPrompt([
            str(self._root / 'playbooks/web/nginx.yml'),
            str(self._root / 'inventories/staging.ini'),
            ])
        config = RunConfig.resolve(Environment({'USER': 'alice'}), prompt, self._root, resolved)
        self.assertEqual(config.playbook, self._root / 'playbooks/web/nginx.yml')
        self.assertEqual(resolved, {
            'PLAYBOOK': str(self._root / 'playbooks/web/nginx.yml'),
            'INVENTORY': str(self._root / 'inventories/staging.ini'),
            })

    def test_missing_user(self):
        with self.assertRaisesRegex(ConfigurationError, "USER"):
            RunConfig.resolve(
                Environment({'PLAYBOOK': 'site', 'INVENTORY': 'staging'}), FakePathPrompt(), self._root, {})

    def test_empty_playbook(self):
        with self.assertRaisesRegex(ConfigurationError, "PLAYBOOK"):
            RunConfig.resolve(
                Environment({'USER': 'alice', 'PLAYBOOK': '', 'INVENTORY': 'staging'}),
                FakePathPrompt(),
                self._root,
                {},
                )

    def test_missing_file(self):
        with self.assertRaisesRegex(ConfigurationError, "production.ini"):
            RunConfig.resolve(
                Environment({'USER': 'alice', 'PLAYBOOK': 'site', 'INVENTORY': 'production'}),
                FakePathPrompt(),
                self._root,
                {},
                )


class TestInteractivePathPrompt(unittest.TestCase):

    def setUp(self):
        self._root_dir = TemporaryDirectory()
        self._playbooks = Path(self._root_dir.name, 'playbooks')
        self._playbooks.mkdir()
        for name in 'site.yml', 'site-db.yml', 'users.yml':
            self._playbooks.joinpath(name).write_text('[]\n')

    def tearDown(self):
        self._root_dir.cleanup()

    def test_single_match(self):
        operator = FakeOperator(['users'])
        path = InteractivePathPrompt(operator).resolve("Playbook? ", self._playbooks, '.yml')
        self.assertEqual(path, str(self._playbooks / 'users.yml'))

    def test_ambiguous_then_exact(self):
        operator = FakeOperator(['site', 'nonexistent', str(self._playbooks / 'site.yml')])
        path = InteractivePathPrompt(operator).resolve("Playbook? ", self._playbooks, '.yml')
        self.assertEqual(path, str(self._playbooks / 'site.yml'))
        self.assertIn(str(self._playbooks / 'site-db.yml'), operator.output())
        self.assertIn("Nothing matches 'nonexistent'", operator.output())
        self.assertEqual(operator.prompts, ["Playbook? "] * 3)


if __name__ == '__main__':
    logging.basicConfig(level=logging.DEBUG)
    unittest.main()
