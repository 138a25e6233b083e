"""Test analysis."""

import copy
import unittest

from .context import wanlitest  # noqa: F401
from .util import make_results, make_suite

from wanlitest import analysis  # noqa: I100
from wanlitest.analysis import ErrorPattern
from wanlitest.resultdef import TestStatus

P = TestStatus.PASSED
F = TestStatus.FAILED
S = TestStatus.SKIPPED


class TestCategorizeError(unittest.TestCase):

    def test_categories(self):
        for error, category in [
            ('Read timeout after 30s', 'timeout'),
            ('请求超时', 'timeout'),
            ('Connection refused', 'connection'),
            ('数据库连接失败', 'connection'),
            ('HTTP 401', 'authentication'),
            ('Unauthorized', 'authentication'),
            ('403 Forbidden', 'authorization'),
            ('HTTP 404 Not Found', 'not_found'),
            ('page not found', 'not_found'),
            ('500 Internal Server Error', 'server_error'),
            ('Internal server problem', 'server_error'),
            ('assertion failed', 'other'),
            ('', 'other'),
        ]:
            with self.subTest(error=error):
                self.assertEqual(category, analysis.categorize_error(error))

    def test_first_match_wins(self):
        self.assertEqual('timeout', analysis.categorize_error('Connection timeout after 500 error'))
        self.assertEqual('connection', analysis.categorize_error('connection reset: 401'))
        self.assertEqual('authentication', analysis.categorize_error('401 then 403'))
        self.assertEqual('authorization', analysis.categorize_error('forbidden, 404'))
        self.assertEqual('not_found', analysis.categorize_error('404 from 500 handler'))

    def test_case_insensitive(self):
        self.assertEqual('timeout', analysis.categorize_error('TIMEOUT'))
        self.assertEqual('authentication', analysis.categorize_error('UNAUTHORIZED access'))


class TestErrorPatterns(unittest.TestCase):

    def test_counts_only_failures_with_errors(self):
        results = make_results(
            make_suite('Auth', [F, F, P, F], errors=['401', 'Unauthorized', '', '']),
            make_suite('Api', [F, S], errors=['timeout', 'timeout']))
        self.assertEqual((ErrorPattern('authentication', 2), ErrorPattern('timeout', 1)),
                         analysis.find_error_patterns(results))

    def test_sort_ties_keep_first_seen(self):
        results = make_results(
            make_suite('One', [F, F, F], errors=['boom', '404', 'connection lost']),
            make_suite('Two', [F, F], errors=['not found', 'bad']))
        self.assertEqual((ErrorPattern('other', 2), ErrorPattern('not_found', 2),
                          ErrorPattern('connection', 1)),
                         analysis.find_error_patterns(results))

    def test_no_errors(self):
        results = make_results(make_suite('Ok', [P, P, S]))
        self.assertEqual((), analysis.find_error_patterns(results))


class TestAnalyze(unittest.TestCase):

    def test_example_run(self):
        auth = make_suite('Auth', [P, F], duration_ms=100, errors=['', '401 unauthorized'])
        health = make_suite('Health', [P], duration_ms=50)
        report = analysis.analyze(make_results(auth, health))
        self.assertIs(auth, report.most_failed_suite)
        self.assertIs(health, report.fastest_suite)
        self.assertIs(auth, report.slowest_suite)
        self.assertEqual((ErrorPattern('authentication', 1),), report.error_patterns)

    def test_ties_pick_first(self):
        first = make_suite('First', [F, P], duration_ms=200)
        second = make_suite('Second', [F, P], duration_ms=200)
        third = make_suite('Third', [P], duration_ms=200)
        report = analysis.analyze(make_results(first, second, third))
        self.assertIs(first, report.most_failed_suite)
        self.assertIs(first, report.fastest_suite)
        self.assertIs(first, report.slowest_suite)

    def test_picks_extremes(self):
        a = make_suite('A', [P], duration_ms=300)
        b = make_suite('B', [F, F, F], duration_ms=20)
        c = make_suite('C', [F], duration_ms=900)
        report = analysis.analyze(make_results(a, b, c))
        self.assertIs(b, report.most_failed_suite)
        self.assertIs(b, report.fastest_suite)
        self.assertIs(c, report.slowest_suite)

    def test_empty(self):
        report = analysis.analyze(make_results())
        self.assertIsNone(report.most_failed_suite)
        self.assertIsNone(report.fastest_suite)
        self.assertIsNone(report.slowest_suite)
        self.assertEqual((), report.error_patterns)
        self.assertEqual(0, report.results.summary.success_rate)

    def test_pure(self):
        results = make_results(
            make_suite('Auth', [P, F], errors=['', 'Forbidden']),
            make_suite('Api', [F], duration_ms=40, errors=['timeout']))
        before = copy.deepcopy(results)
        first = analysis.analyze(results)
        second = analysis.analyze(results)
        self.assertEqual(first, second)
        self.assertEqual(before, results)
        self.assertIs(results, first.results)


class TestVerdict(unittest.TestCase):

    def test_verdict(self):
        for rate, expected in [
            (100, analysis.PASS),
            (90, analysis.PASS),
            (89, analysis.PARTIAL),
            (70, analysis.PARTIAL),
            (69, analysis.FAIL),
            (0, analysis.FAIL),
        ]:
            with self.subTest(rate=rate):
                self.assertEqual(expected, analysis.verdict(rate, 90, 70))

    def test_equal_thresholds(self):
        self.assertEqual(analysis.PASS, analysis.verdict(50, 50, 50))
        self.assertEqual(analysis.FAIL, analysis.verdict(49, 50, 50))

    def test_bad_thresholds(self):
        with self.assertRaises(ValueError):
            analysis.verdict(80, 70, 90)
