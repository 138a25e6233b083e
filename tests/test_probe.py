"""Test probe."""

import itertools
import os
import unittest
from unittest import mock

import requests

from .context import wanlitest  # noqa: F401
from .util import ManualClock, patch_config_get

from wanlitest import probe  # noqa: I100
from wanlitest.collector import ResultCollector
from wanlitest.resultdef import TestStatus


def response(status: int) -> mock.Mock:
    resp = mock.Mock(spec=requests.Response)
    resp.status_code = status
    return resp


def fake_time(*ms: int) -> mock.Mock:
    """Return a stand-in for the time module whose monotonic() returns the given times."""
    fake = mock.Mock()
    fake.monotonic.side_effect = [t / 1000 for t in ms]
    return fake


class TestProbe(unittest.TestCase):

    def setUp(self):
        super().setUp()
        self.session = mock.Mock(spec=requests.Session)

    def test_join_url(self):
        self.assertEqual('http://host:8080/api/x', probe.join_url('http://host:8080/', '/api/x'))
        self.assertEqual('http://host/api', probe.join_url('http://host', 'api'))

    def test_ok(self):
        self.session.get.return_value = response(200)
        with mock.patch('wanlitest.probe.time', fake_time(1000, 1042)):
            result = probe.probe(self.session, 'http://host/health', 5)
        self.assertEqual(probe.ProbeResult('http://host/health', 200, 42), result)
        self.assertTrue(result.ok)
        self.session.get.assert_called_once_with('http://host/health', timeout=5)

    def test_bad_status(self):
        self.session.get.return_value = response(503)
        result = probe.probe(self.session, 'http://host/health', 5)
        self.assertFalse(result.ok)
        self.assertEqual('http://host/health: status 503', probe.failure_text(result))

    def test_no_response(self):
        self.session.get.side_effect = requests.exceptions.ConnectionError('Connection refused')
        result = probe.probe(self.session, 'http://host/health', 5)
        self.assertEqual(0, result.status)
        self.assertFalse(result.ok)
        self.assertEqual('http://host/health: Connection refused', probe.failure_text(result))

    def test_session(self):
        with probe.Session(total=2, backoff_factor=0.5) as session:
            self.assertEqual(probe.USER_AGENT, session.headers['User-Agent'])
            retries = session.get_adapter('http://host/').max_retries
            self.assertEqual(2, retries.total)
            self.assertEqual(0.5, retries.backoff_factor)
            self.assertIn(503, retries.status_forcelist)
            self.assertFalse(retries.raise_on_status)


class TestProbeSuites(unittest.TestCase):

    def setUp(self):
        super().setUp()
        self.session = mock.Mock(spec=requests.Session)
        self.collector = ResultCollector(clock=ManualClock())

    def test_endpoints(self):
        self.session.get.side_effect = [response(200), response(200), response(404)]
        endpoints = [
            ('Health', '/actuator/health', 100),
            ('Docs', '/v3/api-docs', 500),
            ('Missing', '/nope', 500),
        ]
        # Each probe reads the clock before and after its request
        with mock.patch('wanlitest.probe.time', fake_time(0, 50, 1000, 1600, 2000, 2010)):
            probe.probe_endpoints(self.collector, self.session, 'http://host', endpoints, 5)
        results = self.collector.finalize()

        suite = results.suites[0]
        self.assertEqual(probe.ENDPOINT_SUITE, suite.name)
        self.assertEqual([TestStatus.PASSED, TestStatus.FAILED, TestStatus.FAILED],
                         [o.status for o in suite.outcomes])
        self.assertEqual('Response time: 50ms (limit: 100ms)', suite.outcomes[0].message)
        self.assertEqual('http://host/v3/api-docs: response timeout after 600ms',
                         suite.outcomes[1].error)
        self.assertEqual('http://host/nope: status 404', suite.outcomes[2].error)

    def test_concurrent_pass(self):
        self.session.get.return_value = response(200)
        probe.probe_concurrent(self.collector, self.session, 'http://host/health', 10, 5, 90)
        outcome = self.collector.finalize().suites[0].outcomes[0]
        self.assertEqual('10 concurrent requests', outcome.name)
        self.assertEqual(TestStatus.PASSED, outcome.status)
        self.assertTrue(outcome.message.startswith('10 of 10 succeeded'))
        self.assertEqual(10, self.session.get.call_count)

    def test_concurrent_fail(self):
        # Only the first 5 requests succeed
        calls = itertools.count()
        self.session.get.side_effect = lambda *args, **kwargs: response(
            200 if next(calls) < 5 else 500)
        probe.probe_concurrent(self.collector, self.session, 'http://host/health', 10, 5, 90)
        outcome = self.collector.finalize().suites[0].outcomes[0]
        self.assertEqual(TestStatus.FAILED, outcome.status)
        self.assertTrue(outcome.message.startswith('5 of 10 succeeded'))
        self.assertEqual('http://host/health: status 500', outcome.error)

    def test_concurrent_threshold_met(self):
        calls = itertools.count()
        self.session.get.side_effect = lambda *args, **kwargs: response(
            200 if next(calls) < 9 else 500)
        probe.probe_concurrent(self.collector, self.session, 'http://host/health', 10, 5, 90)
        outcome = self.collector.finalize().suites[0].outcomes[0]
        self.assertEqual(TestStatus.PASSED, outcome.status)

    def test_concurrent_disabled(self):
        probe.probe_concurrent(self.collector, self.session, 'http://host/health', 0, 5, 90)
        outcome = self.collector.finalize().suites[0].outcomes[0]
        self.assertEqual(TestStatus.SKIPPED, outcome.status)
        self.session.get.assert_not_called()


class TestRunProbes(unittest.TestCase):

    def setUp(self):
        super().setUp()
        # Ignore any user configuration
        patcher = mock.patch.dict(os.environ, {'XDG_CONFIG_HOME': '/dev/null'})
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_run_probes(self):
        session = mock.Mock(spec=requests.Session)
        session.get.return_value = response(200)
        collector = ResultCollector(clock=ManualClock())
        with patch_config_get('probe_endpoints', [('Health', '/actuator/health', 10000)]), \
                mock.patch('wanlitest.probe.Session') as session_class:
            session_class.return_value.__enter__.return_value = session
            probe.run_probes(collector, 'http://host:8080', timeout=2, concurrency=0)
        results = collector.finalize()

        self.assertEqual([probe.ENDPOINT_SUITE, probe.CONCURRENT_SUITE],
                         [s.name for s in results.suites])
        self.assertEqual((1, 0, 1), (results.summary.passed, results.summary.failed,
                                     results.summary.skipped))
        session.get.assert_called_once_with('http://host:8080/actuator/health', timeout=2)


class TestFanOut(unittest.TestCase):

    def test_workers_capped(self):
        session = mock.Mock(spec=requests.Session)
        session.get.return_value = response(200)
        real_executor = probe.concurrent.futures.ThreadPoolExecutor
        with mock.patch('concurrent.futures.ThreadPoolExecutor',
                        side_effect=real_executor) as executor:
            results = probe.fan_out(session, 'http://host/health', 50, 5)
        self.assertEqual(50, len(results))
        self.assertEqual(50, session.get.call_count)
        self.assertEqual(probe.MAX_WORKERS, executor.call_args[1]['max_workers'])

    def test_small_batch(self):
        session = mock.Mock(spec=requests.Session)
        session.get.return_value = response(200)
        with mock.patch('concurrent.futures.ThreadPoolExecutor',
                        side_effect=probe.concurrent.futures.ThreadPoolExecutor) as executor:
            probe.fan_out(session, 'http://host/health', 3, 5, max_workers=8)
        self.assertEqual(3, executor.call_args[1]['max_workers'])
