"""Collect test outcomes into suites while a test run is in progress."""

import copy
import datetime
import logging
from typing import Any, Callable, Optional, Union

from wanlitest.resultdef import ResultSet, SuiteResult, Summary, TestOutcome, TestStatus
from wanlitest.resultdef import success_rate


Clock = Callable[[], datetime.datetime]

# Marker shown for each outcome in the log
STATUS_MARK = {
    TestStatus.PASSED: 'PASS',
    TestStatus.FAILED: 'FAIL',
    TestStatus.SKIPPED: 'SKIP',
}


class SuiteStateError(RuntimeError):
    """The collector was driven in the wrong order (a bug in the caller)."""


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def elapsed_ms(start: datetime.datetime, end: datetime.datetime) -> int:
    return int((end - start).total_seconds() * 1000)


class ResultCollector:
    """Accumulate outcomes of a test run grouped into suites.

    Only one suite may be open at a time. A driver calls start_suite(), add_test() any number of
    times and end_suite() for each suite, then finalize() to get a ResultSet.
    """

    def __init__(self, clock: Clock = utcnow):
        self.clock = clock
        self.started_at = clock()
        self.current_suite = None  # type: Optional[SuiteResult]
        self.suites = []           # type: list[SuiteResult]

    def recorded_suites(self) -> list[SuiteResult]:
        """Return the closed suites followed by the open one, if any."""
        return self.suites + ([self.current_suite] if self.current_suite else [])

    # Progress so far, including the open suite; finalize() counts closed suites only
    @property
    def passed(self) -> int:
        return sum(suite.passed for suite in self.recorded_suites())

    @property
    def failed(self) -> int:
        return sum(suite.failed for suite in self.recorded_suites())

    @property
    def skipped(self) -> int:
        return sum(suite.skipped for suite in self.recorded_suites())

    @property
    def total(self) -> int:
        return sum(suite.total for suite in self.recorded_suites())

    def start_suite(self, name: str, description: str = ''):
        if self.current_suite:
            raise SuiteStateError(
                f'Cannot start suite "{name}" while "{self.current_suite.name}" is still open')
        self.current_suite = SuiteResult(name=name, description=description,
                                         started_at=self.clock())
        logging.info('Starting test suite: %s', name)
        if description:
            logging.debug('  %s', description)

    def add_test(self, name: str, status: Union[TestStatus, str], message: str = '',
                 details: Optional[dict[str, Any]] = None):
        """Record the outcome of one check in the open suite.

        status may also be given as its string value ('passed', 'failed' or 'skipped').
        """
        if not self.current_suite:
            raise SuiteStateError(f'No active test suite for test "{name}"')
        status = TestStatus(status)
        outcome = TestOutcome(name=name, status=status, message=message,
                              details=dict(details) if details else {},
                              recorded_at=self.clock())
        self.current_suite.add(outcome)

        logging.info('  %s %s%s', STATUS_MARK[status], name, f': {message}' if message else '')
        if status == TestStatus.FAILED and outcome.error:
            logging.info('    error: %s', outcome.error)

    def end_suite(self):
        """Close the open suite; does nothing if there isn't one."""
        suite = self.current_suite
        if not suite:
            return
        suite.ended_at = self.clock()
        suite.duration_ms = elapsed_ms(suite.started_at, suite.ended_at)
        self.suites.append(suite)
        self.current_suite = None
        logging.info('Suite %s: %d passed, %d failed, %d skipped',
                     suite.name, suite.passed, suite.failed, suite.skipped)

    def finalize(self) -> ResultSet:
        """Return a snapshot of everything collected so far.

        May be called more than once; each call reflects the current time. The returned suites are
        copies, so later activity on this collector does not change the snapshot.
        """
        if self.current_suite:
            logging.warning('Suite "%s" is still open and is not included in the results',
                            self.current_suite.name)
        # Count only closed suites so the totals always match the suites in the snapshot
        passed = sum(suite.passed for suite in self.suites)
        failed = sum(suite.failed for suite in self.suites)
        skipped = sum(suite.skipped for suite in self.suites)
        total = passed + failed + skipped
        ended_at = self.clock()
        summary = Summary(
            total=total,
            passed=passed,
            failed=failed,
            skipped=skipped,
            success_rate=success_rate(passed, total),
            started_at=self.started_at,
            ended_at=ended_at,
            duration_ms=elapsed_ms(self.started_at, ended_at))
        return ResultSet(summary=summary, suites=tuple(copy.deepcopy(self.suites)))
