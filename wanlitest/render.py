"""Render an analyzed test run as HTML and enhanced JSON reports
"""

import datetime
import io
import textwrap
from html import escape
from typing import Optional, TextIO

import wanlitest
from wanlitest import analysis
from wanlitest import resultio
from wanlitest.analysis import EnhancedReport
from wanlitest.resultdef import SuiteResult, TestOutcome, TestStatus


# strftime() format string including time zone
TIMEZ_FMT = '%a, %d %b %Y %H:%M:%S %z'

# Name of the enhanced JSON layout
REPORT_FORMAT = 'enhanced_json_v1'

GENERATOR = 'wanlitest report generator'

# Marker shown next to each test for its status
STATUS_MARK = {
    TestStatus.PASSED: '✓',
    TestStatus.FAILED: '✗',
    TestStatus.SKIPPED: '⏭',
}

NOT_AVAILABLE = 'N/A'

STYLE = """\
    <style type="text/css">
    body {
      font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
      color: #333;
      background-color: #f5f5f5;
      margin: 0 auto;
      max-width: 1200px;
      padding: 20px;
    }
    .summary {
      display: grid;
      grid-template-columns: repeat(auto-fit, minmax(160px, 1fr));
      gap: 20px;
    }
    .card {
      background: white;
      padding: 20px;
      border-radius: 10px;
      text-align: center;
    }
    .number {
      display: block;
      font-size: 2.5em;
      font-weight: bold;
    }
    .label {
      color: #666;
      text-transform: uppercase;
    }
    .passed { color: #28a745; }
    .failed { color: #dc3545; }
    .skipped { color: #ffc107; }
    .total { color: #007bff; }
    .progress-bar {
      height: 8px;
      background: #e9ecef;
      border-radius: 4px;
      margin: 20px 0;
    }
    .progress-fill {
      height: 100%;
      border-radius: 4px;
    }
    .progress-fill.pass { background: #28a745; }
    .progress-fill.partial { background: #ffc107; }
    .progress-fill.fail { background: #dc3545; }
    details.test-suite {
      background: white;
      border-radius: 10px;
      margin: 10px 0;
      padding: 10px 20px;
    }
    details.test-suite summary {
      cursor: pointer;
      font-weight: bold;
    }
    .suite-stats span {
      font-weight: normal;
      margin-left: 1em;
    }
    .suite-description, .test-message {
      color: #666;
      font-size: 0.9em;
    }
    ul.tests {
      list-style: none;
      padding-left: 0;
    }
    li.test-item {
      border-bottom: 1px solid #f0f0f0;
      padding: 8px 0;
    }
    .test-message {
      margin-left: 2em;
    }
    .test-error {
      background: #f8d7da;
      color: #721c24;
      padding: 10px;
      border-radius: 5px;
      white-space: pre-wrap;
    }
    table.metadata td {
      padding: 0.3em 1em 0.3em 0;
    }
    </style>
"""


def format_time(ts: Optional[datetime.datetime]) -> str:
    if not ts:
        return NOT_AVAILABLE
    return ts.strftime(TIMEZ_FMT)


def format_duration(ms: Optional[int]) -> str:
    """Format a duration in milliseconds for people to read."""
    if not ms:
        return NOT_AVAILABLE
    if ms < 1000:
        return f'{ms}ms'
    if ms < 60000:
        return f'{ms / 1000:.1f}s'
    return f'{ms // 60000}m {ms % 60000 // 1000}s'


def suite_label(suite: Optional[SuiteResult], detail: str = '') -> str:
    if not suite:
        return NOT_AVAILABLE
    return f'{suite.name} ({detail})' if detail else suite.name


def write_summary(report: EnhancedReport, verdict: str, f: TextIO):
    summary = report.results.summary
    cards = [
        ('total_tests', 'total', summary.total, 'Total tests'),
        ('passed_tests', 'passed', summary.passed, 'Passed'),
        ('failed_tests', 'failed', summary.failed, 'Failed'),
        ('skipped_tests', 'skipped', summary.skipped, 'Skipped'),
        ('success_rate', 'total', f'{summary.success_rate}%', 'Success rate'),
        ('duration', 'total', format_duration(summary.duration_ms), 'Duration'),
    ]
    print('<div class="summary">', file=f)
    for ident, cssclass, value, label in cards:
        print(f'<div class="card"><span class="number {cssclass}" id="{ident}">{escape(str(value))}'
              f'</span><span class="label">{label}</span></div>', file=f)
    print('</div>', file=f)
    print(f'<div class="progress-bar"><div class="progress-fill {verdict}" '
          f'style="width: {summary.success_rate}%"></div></div>', file=f)
    print(f'<p>Verdict: <strong class="verdict {verdict}" id="verdict">{verdict.upper()}</strong></p>',
          file=f)


def write_analysis(report: EnhancedReport, f: TextIO):
    most_failed = report.most_failed_suite
    fastest = report.fastest_suite
    slowest = report.slowest_suite
    print('<h2>Analysis</h2><ul class="analysis">', file=f)
    print('<li>Most failed suite: '
          f'{escape(suite_label(most_failed, f"{most_failed.failed} failed" if most_failed else ""))}'
          '</li>', file=f)
    print('<li>Fastest suite: '
          f'{escape(suite_label(fastest, format_duration(fastest.duration_ms) if fastest else ""))}'
          '</li>', file=f)
    print('<li>Slowest suite: '
          f'{escape(suite_label(slowest, format_duration(slowest.duration_ms) if slowest else ""))}'
          '</li>', file=f)
    if report.error_patterns:
        print('<li>Error patterns:<ul>', file=f)
        for pattern in report.error_patterns:
            print(f'<li><span class="error-type">{escape(pattern.type)}</span>: {pattern.count}</li>',
                  file=f)
        print('</ul></li>', file=f)
    else:
        print('<li>Error patterns: none</li>', file=f)
    print('</ul>', file=f)


def write_outcome(outcome: TestOutcome, f: TextIO):
    status = outcome.status.value
    print(f'<li class="test-item"><span class="test-status {status}" title="{status}">'
          f'{STATUS_MARK[outcome.status]}</span> '
          f'<span class="test-name">{escape(outcome.name)}</span>', file=f)
    if outcome.message:
        print(f'<div class="test-message">{escape(outcome.message)}</div>', file=f)
    if outcome.status == TestStatus.FAILED and outcome.error:
        print(f'<pre class="test-error">{escape(outcome.error)}</pre>', file=f)
    print('</li>', file=f)


def write_suite(suite: SuiteResult, f: TextIO):
    """Write one collapsible section for a suite; it starts open if anything failed."""
    cssclass = 'test-suite has-failures' if suite.has_failures else 'test-suite'
    is_open = ' open' if suite.has_failures else ''
    print(f'<details class="{cssclass}"{is_open}>', file=f)
    print(f'<summary>{escape(suite.name)}<span class="suite-stats">'
          f'<span class="passed">{STATUS_MARK[TestStatus.PASSED]} {suite.passed}</span>'
          f'<span class="failed">{STATUS_MARK[TestStatus.FAILED]} {suite.failed}</span>'
          f'<span class="skipped">{STATUS_MARK[TestStatus.SKIPPED]} {suite.skipped}</span>'
          f'<span>⏱ {format_duration(suite.duration_ms)}</span></span></summary>', file=f)
    if suite.description:
        print(f'<div class="suite-description">{escape(suite.description)}</div>', file=f)
    print('<ul class="tests">', file=f)
    for outcome in suite.outcomes:
        write_outcome(outcome, f)
    print('</ul></details>', file=f)


def write_metadata(report: EnhancedReport, f: TextIO):
    summary = report.results.summary
    print(textwrap.dedent(f"""\
        <h2>Test metadata</h2>
        <table class="metadata">
        <tr><td>Start time:</td><td>{escape(format_time(summary.started_at))}</td></tr>
        <tr><td>End time:</td><td>{escape(format_time(summary.ended_at))}</td></tr>
        <tr><td>Duration:</td><td>{summary.duration_ms}ms</td></tr>
        <tr><td>Test suites:</td><td id="suite_count">{len(report.results.suites)}</td></tr>
        </table>"""), file=f)


def render_html(report: EnhancedReport, title: str, verdict: str,
                generated_at: Optional[datetime.datetime] = None) -> str:
    """Render the complete HTML report document.

    The result is a single self-contained page. All text that came from the test results is
    escaped.

    Args:
        report: analyzed results
        title: page title
        verdict: one of the analysis verdicts, used to colour the progress bar
        generated_at: time to show as the report generation time, if any
    """
    f = io.StringIO()
    print(textwrap.dedent(f"""\
        <!DOCTYPE html>
        <html lang="en"><head>
        <meta charset="UTF-8">
        <title>{escape(title)}</title>
        <meta name="generator" content="wanlitest {wanlitest.__version__}">
        """) + textwrap.dedent(STYLE) + textwrap.dedent(f"""\
        </head>
        <body>
        <h1>{escape(title)}</h1>"""), file=f)
    if generated_at:
        print(f'<p>Report generated {escape(format_time(generated_at))}</p>', file=f)
    write_summary(report, verdict, f)
    write_analysis(report, f)
    print('<h2>Test suites</h2>', file=f)
    for suite in report.results.suites:
        write_suite(suite, f)
    write_metadata(report, f)
    print('</body></html>', file=f)
    return f.getvalue()


def enhanced_json(report: EnhancedReport, verdict: str,
                  generated_at: datetime.datetime) -> resultio.JsonDict:
    """Build the enhanced JSON report: the results file contents plus metadata and analytics."""
    def suite_json(suite: Optional[SuiteResult]) -> Optional[resultio.JsonDict]:
        return resultio.suite_to_json(suite) if suite else None

    return {
        **resultio.to_json(report.results),
        'metadata': {
            'generator': GENERATOR,
            'version': wanlitest.__version__,
            'generated_at': resultio.format_timestamp(generated_at),
            'report_format': REPORT_FORMAT,
        },
        'analysis': {
            'most_failed_suite': suite_json(report.most_failed_suite),
            'fastest_suite': suite_json(report.fastest_suite),
            'slowest_suite': suite_json(report.slowest_suite),
            'error_patterns': [{'type': p.type, 'count': p.count} for p in report.error_patterns],
            'verdict': verdict,
        },
    }


def report_verdict(report: EnhancedReport, pass_threshold: int, partial_threshold: int) -> str:
    return analysis.verdict(report.results.summary.success_rate, pass_threshold, partial_threshold)
