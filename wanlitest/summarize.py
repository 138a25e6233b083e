"""Plain text summaries of test runs"""

import io
from typing import List

from wanlitest import render
from wanlitest.analysis import EnhancedReport
from wanlitest.resultdef import ResultSet, TestStatus


def show_totals(results: ResultSet, details: bool = False):
    print(''.join(summarize_totals(results, details)))


def summarize_totals(results: ResultSet, details: bool = False) -> List[str]:
    f = io.StringIO()
    summary = results.summary
    print('TOTAL:', summary.total, file=f)
    print('PASSED:', summary.passed, file=f)
    print('FAILED:', summary.failed, file=f)
    print('SKIPPED:', summary.skipped, file=f)
    print(f'SUCCESS RATE: {summary.success_rate}%', file=f)
    print('DURATION:', render.format_duration(summary.duration_ms), file=f)
    if details:
        # Display the failures
        for suite in results.suites:
            for test in suite.outcomes:
                if test.status == TestStatus.FAILED:
                    print(f'{suite.name}: {test.name}: {test.error or test.message}', file=f)
    f.seek(0)
    return f.readlines()


def summarize_analysis(report: EnhancedReport, verdict: str) -> List[str]:
    f = io.StringIO()
    print('VERDICT:', verdict.upper(), file=f)
    if report.most_failed_suite and report.most_failed_suite.failed:
        print('MOST FAILED SUITE:', report.most_failed_suite.name, file=f)
    if report.slowest_suite:
        print('SLOWEST SUITE:', report.slowest_suite.name,
              render.format_duration(report.slowest_suite.duration_ms), file=f)
    if report.error_patterns:
        print('ERROR PATTERNS:', file=f)
        for pattern in report.error_patterns:
            print(f'  {pattern.type}: {pattern.count}', file=f)
    f.seek(0)
    return f.readlines()
