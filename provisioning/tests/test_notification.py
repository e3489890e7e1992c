# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import json
import logging
import os
import unittest
from http.server import BaseHTTPRequestHandler
from http.server import HTTPServer
from threading import Thread

from provisioning._errors import NotificationError
from provisioning._notification import ProvisionReport
from provisioning._notification import TeamInboxNotifier


def _report(**overrides):
    values = dict(
        repository_url='https://github.com/',
        repository='acme/infra',
        playbook='site',
        inventory='staging',
        user='alice',
        commit='5d2c8a41f0e9b7c6a3d1e2f4a5b6c7d8e9f0a1b2',
        tag='provision_2024_03_07_09_05_site_staging_alice',
        duration_sec=83.456,
        execution_tags=['nginx', 'certs'],
        )
    values.update(overrides)
    return ProvisionReport(**values)


class TestProvisionReport(unittest.TestCase):

    def test_links(self):
        report = _report()
        self.assertEqual(
            report.commit_url(),
            'https://github.com/acme/infra/commit/5d2c8a41f0e9b7c6a3d1e2f4a5b6c7d8e9f0a1b2')
        self.assertEqual(
            report.tag_url(),
            'https://github.com/acme/infra/releases/tag/provision_2024_03_07_09_05_site_staging_alice')

    def test_content(self):
        report = _report()
        self.assertEqual(report.subject(), "Provisioned acme/infra: site / staging")
        content = report.html_content()
        self.assertIn('>5d2c8a</a>', content)
        self.assertIn('>provision_2024_03_07_09_05_site_staging_alice</a>', content)
        self.assertIn('<b>site</b>', content)
        self.assertIn('<b>staging</b>', content)
        self.assertIn('83.46 seconds', content)
        self.assertIn('nginx, certs', content)
        self.assertEqual(report.as_dict()['tags'], ['provision', 'alice'])

    def test_all_tags(self):
        self.assertIn('Tags: all', _report(execution_tags=[]).html_content())


_no_proxy_names = ('NO_PROXY', 'no_proxy')


class _InboxHandler(BaseHTTPRequestHandler):
    received = []
    status = 200

    def do_POST(self):
        length = int(self.headers['Content-Length'])
        self.received.append((self.headers['Authorization'], json.loads(self.rfile.read(length))))
        self.send_response(self.status)
        self.send_header('Content-Length', '2')
        self.end_headers()
        self.wfile.write(b'{}')

    def log_message(self, format, *args):
        _logger.debug("Inbox: " + format, *args)


class TestTeamInboxNotifier(unittest.TestCase):

    def setUp(self):
        self._saved_no_proxy = {name: os.environ.get(name) for name in _no_proxy_names}
        for name in _no_proxy_names:
            os.environ[name] = '127.0.0.1'
        _InboxHandler.received = []
        _InboxHandler.status = 200
        self._server = HTTPServer(('127.0.0.1', 0), _InboxHandler)
        self._thread = Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()
        [host, port] = self._server.server_address
        self._url = f'http://{host}:{port}/v1/messages/team_inbox'

    def tearDown(self):
        if self._server is not None:
            self._stop_server()
        for name, value in self._saved_no_proxy.items():
            if value is None:
                os.environ.pop(name, None)
            else:
                os.environ[name] = value

    def test_posted(self):
        TeamInboxNotifier(self._url, 'secret').notify(_report())
        [(authorization, payload)] = _InboxHandler.received
        self.assertEqual(authorization, 'Bearer secret')
        self.assertEqual(payload['subject'], "Provisioned acme/infra: site / staging")
        self.assertEqual(payload['source'], 'ansible')
        self.assertIn('<a href=', payload['content'])

    def test_rejected(self):
        _InboxHandler.status = 500
        with self.assertRaisesRegex(NotificationError, "HTTP 500"):
            TeamInboxNotifier(self._url, 'secret').notify(_report())

    def test_unreachable(self):
        self._stop_server()
        with self.assertRaises(NotificationError):
            TeamInboxNotifier(self._url, 'secret').notify(_report())

    def _stop_server(self):
        self._server.shutdown()
        self._server.server_close()
        self._thread.join()
        self._server = None


_logger = logging.getLogger(__name__)

if __name__ == '__main__':
    logging.basicConfig(level=logging.DEBUG)
    unittest.main()
