"""Code to derive analytics from a finished test run."""

import collections
from dataclasses import dataclass
from typing import Callable, Optional

from wanlitest.resultdef import ResultSet, SuiteResult, TestStatus


# Error categories with the lower-case substrings that identify them. The first category with a
# matching substring wins, so the order matters.
ERROR_CATEGORIES = (
    ('timeout', ('timeout', '超时')),
    ('connection', ('connection', '连接')),
    ('authentication', ('401', 'unauthorized')),
    ('authorization', ('403', 'forbidden')),
    ('not_found', ('404', 'not found')),
    ('server_error', ('500', 'internal server')),
)

# Category of errors that match nothing else
OTHER_ERROR = 'other'

# Verdicts of a whole run
PASS = 'pass'
PARTIAL = 'partial'
FAIL = 'fail'


@dataclass(frozen=True)
class ErrorPattern:
    """Number of failures that fell into one error category."""

    type: str  # noqa: A003
    count: int


@dataclass(frozen=True)
class EnhancedReport:
    """A result set together with the analytics derived from it.

    The suite fields are None when there are no suites at all.
    """

    results: ResultSet
    most_failed_suite: Optional[SuiteResult]
    fastest_suite: Optional[SuiteResult]
    slowest_suite: Optional[SuiteResult]
    error_patterns: tuple[ErrorPattern, ...]


def categorize_error(error: str) -> str:
    """Classify an error message into one of the ERROR_CATEGORIES, or OTHER_ERROR."""
    lower = error.lower()
    for category, keywords in ERROR_CATEGORIES:
        if any(keyword in lower for keyword in keywords):
            return category
    return OTHER_ERROR


def find_error_patterns(results: ResultSet) -> tuple[ErrorPattern, ...]:
    """Count the failures in each error category, most common first.

    Only failed tests with error text are counted. Categories with equal counts stay in the order
    they were first seen.
    """
    counts = collections.Counter()  # type: collections.Counter[str]
    for suite in results.suites:
        for outcome in suite.outcomes:
            if outcome.status == TestStatus.FAILED and outcome.error:
                counts[categorize_error(outcome.error)] += 1
    # sorted() is stable and Counter remembers insertion order
    return tuple(ErrorPattern(category, count) for category, count
                 in sorted(counts.items(), key=lambda x: -x[1]))


def _first_best(suites: tuple[SuiteResult, ...], better: Callable[[SuiteResult, SuiteResult], bool]
                ) -> Optional[SuiteResult]:
    """Return the best suite according to better(), preferring the earliest on ties."""
    best = None
    for suite in suites:
        if best is None or better(suite, best):
            best = suite
    return best


def analyze(results: ResultSet) -> EnhancedReport:
    """Derive the analytics for a result set.

    This doesn't modify results and always gives the same answer for the same input.
    """
    suites = results.suites
    return EnhancedReport(
        results=results,
        most_failed_suite=_first_best(suites, lambda a, b: a.failed > b.failed),
        fastest_suite=_first_best(suites, lambda a, b: a.duration_ms < b.duration_ms),
        slowest_suite=_first_best(suites, lambda a, b: a.duration_ms > b.duration_ms),
        error_patterns=find_error_patterns(results))


def verdict(success_rate: int, pass_threshold: int, partial_threshold: int) -> str:
    """Classify a success rate as PASS, PARTIAL or FAIL.

    Args:
        success_rate: percentage of tests that passed
        pass_threshold: lowest success rate that is a pass
        partial_threshold: lowest success rate that is a partial pass
    """
    if partial_threshold > pass_threshold:
        raise ValueError(f'Partial threshold {partial_threshold} is above '
                         f'pass threshold {pass_threshold}')
    if success_rate >= pass_threshold:
        return PASS
    if success_rate >= partial_threshold:
        return PARTIAL
    return FAIL
