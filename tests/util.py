"""Helpers shared by the wanlitest tests."""

import datetime
from typing import Optional
from unittest.mock import patch

from wanlitest import config
from wanlitest.resultdef import ResultSet, SuiteResult, Summary, TestOutcome, TestStatus
from wanlitest.resultdef import success_rate


# Arbitrary fixed time at which test runs start
START = datetime.datetime(2024, 1, 2, 3, 4, 5, tzinfo=datetime.timezone.utc)


def patch_config_get(key: str, value):
    """Patch config.get() so that key returns value and every other key is looked up as before.

    Patches can be stacked by nesting them as context managers inside a test; each one falls back
    to whichever get() was in place when it was created.
    """
    fallback = config.get

    def side_effect(k: str):
        return value if k == key else fallback(k)

    return patch('wanlitest.config.get', side_effect=side_effect)


class ManualClock:
    """A clock for ResultCollector that only moves when told to."""

    def __init__(self, now: datetime.datetime = START):
        self.now = now

    def __call__(self) -> datetime.datetime:
        return self.now

    def advance(self, ms: int):
        self.now += datetime.timedelta(milliseconds=ms)


def make_suite(name: str, statuses: list[TestStatus], duration_ms: int = 100,
               errors: Optional[list[str]] = None) -> SuiteResult:
    """Create a closed suite with one test per status.

    errors, if given, holds the error text for each test in turn ('' for none).
    """
    suite = SuiteResult(name=name, description=f'{name} tests', started_at=START)
    for i, status in enumerate(statuses):
        error = errors[i] if errors else ''
        suite.add(TestOutcome(name=f'{name} test {i}', status=status,
                              details={'error': error} if error else {},
                              recorded_at=START))
    suite.ended_at = START + datetime.timedelta(milliseconds=duration_ms)
    suite.duration_ms = duration_ms
    return suite


def make_results(*suites: SuiteResult) -> ResultSet:
    passed = sum(s.passed for s in suites)
    failed = sum(s.failed for s in suites)
    skipped = sum(s.skipped for s in suites)
    total = passed + failed + skipped
    duration_ms = sum(s.duration_ms for s in suites)
    return ResultSet(
        summary=Summary(total=total, passed=passed, failed=failed, skipped=skipped,
                        success_rate=success_rate(passed, total), started_at=START,
                        ended_at=START + datetime.timedelta(milliseconds=duration_ms),
                        duration_ms=duration_ms),
        suites=tuple(suites))
