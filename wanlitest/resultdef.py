"""Type definitions of collected test results."""

import datetime
import enum
from dataclasses import dataclass, field
from typing import Any, Optional


class TestStatus(enum.Enum):
    """Enumeration of all possible results of a test.

    The values are the ones stored in the results file.
    """
    __test__ = False

    PASSED = 'passed'    # test succeeded
    FAILED = 'failed'    # test failed
    SKIPPED = 'skipped'  # test was not run


@dataclass(frozen=True)
class TestOutcome:
    """Class to hold the result of a single check."""
    __test__ = False

    name: str                     # test name, unique only within its suite
    status: TestStatus            # test result
    message: str = ''             # human-readable detail (if any)
    details: dict[str, Any] = field(default_factory=dict)  # 'error' holds the failure text
    recorded_at: Optional[datetime.datetime] = None

    @property
    def error(self) -> str:
        return str(self.details.get('error') or '')


@dataclass
class SuiteResult:
    """A named group of outcomes with its own timing window.

    The passed/failed/skipped tallies are only changed through add() so they always match the
    outcomes list.
    """

    name: str
    description: str
    started_at: datetime.datetime
    outcomes: list[TestOutcome] = field(default_factory=list)
    ended_at: Optional[datetime.datetime] = None
    duration_ms: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0

    def add(self, outcome: TestOutcome):
        self.outcomes.append(outcome)
        if outcome.status == TestStatus.PASSED:
            self.passed += 1
        elif outcome.status == TestStatus.FAILED:
            self.failed += 1
        else:
            self.skipped += 1

    @property
    def total(self) -> int:
        return self.passed + self.failed + self.skipped

    @property
    def has_failures(self) -> bool:
        return self.failed > 0


@dataclass(frozen=True)
class Summary:
    """Aggregate counts and timing of a whole test run."""

    total: int
    passed: int
    failed: int
    skipped: int
    success_rate: int  # percent, 0-100
    started_at: datetime.datetime
    ended_at: datetime.datetime
    duration_ms: int


@dataclass(frozen=True)
class ResultSet:
    """Finalized snapshot of a test run."""

    summary: Summary
    suites: tuple[SuiteResult, ...] = ()


def success_rate(passed: int, total: int) -> int:
    """Return the rounded percentage of passed tests, or 0 if nothing ran.

    Halves are rounded up rather than to even.
    """
    if not total:
        return 0
    return int(passed * 100 / total + 0.5)
