"""Reading and writing results files

The results file is the JSON form of a ResultSet, shared between the program that runs the tests
and the program that generates the reports. Field names match those written by the older
JavaScript test runner so existing files can still be read.
"""

import datetime
import json
import logging
import os
import tempfile
from typing import Any, Optional, Union

import zstd

from wanlitest.resultdef import ResultSet, SuiteResult, Summary, TestOutcome, TestStatus
from wanlitest.resultdef import success_rate


# Current version of the results file layout; files without one are version 1
RESULTS_FORMAT = 1

# Extension of zstd-compressed results files
COMPRESS_EXT = '.zst'

# Files are always assumed to be using this character map
CHARMAP = 'UTF-8'

JsonDict = dict[str, Any]


class ReportLoadError(Exception):
    """A results file is missing or could not be understood."""


def format_timestamp(ts: Optional[datetime.datetime]) -> Optional[str]:
    return ts.isoformat() if ts else None


def parse_timestamp(ts: Optional[str]) -> Optional[datetime.datetime]:
    """Parse an ISO 8601 time stamp, including the Z suffix that JavaScript produces."""
    if ts is None:
        return None
    if not isinstance(ts, str):
        raise TypeError(f'time stamp must be a string, not {type(ts).__name__}')
    if ts.endswith('Z'):
        ts = ts[:-1] + '+00:00'
    parsed = datetime.datetime.fromisoformat(ts)
    if not parsed.tzinfo:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed


def outcome_to_json(outcome: TestOutcome) -> JsonDict:
    return {
        'name': outcome.name,
        'status': outcome.status.value,
        'message': outcome.message,
        'details': outcome.details,
        'timestamp': format_timestamp(outcome.recorded_at),
    }


def suite_to_json(suite: SuiteResult) -> JsonDict:
    return {
        'name': suite.name,
        'description': suite.description,
        'tests': [outcome_to_json(outcome) for outcome in suite.outcomes],
        'start_time': format_timestamp(suite.started_at),
        'end_time': format_timestamp(suite.ended_at),
        'duration_ms': suite.duration_ms,
        'passed': suite.passed,
        'failed': suite.failed,
        'skipped': suite.skipped,
    }


def to_json(results: ResultSet) -> JsonDict:
    """Convert a ResultSet into a JSON-compatible dict."""
    summary = results.summary
    return {
        'results_format': RESULTS_FORMAT,
        'summary': {
            'total_tests': summary.total,
            'passed_tests': summary.passed,
            'failed_tests': summary.failed,
            'skipped_tests': summary.skipped,
            'success_rate': summary.success_rate,
            'start_time': format_timestamp(summary.started_at),
            'end_time': format_timestamp(summary.ended_at),
            'duration_ms': summary.duration_ms,
        },
        'test_suites': [suite_to_json(suite) for suite in results.suites],
    }


def _int(data: JsonDict, key: str) -> int:
    value = data[key]
    # bool is an int subclass but is never a valid count
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f'"{key}" must be an integer')
    return value


def _str(data: JsonDict, key: str, optional: bool = False) -> str:
    value = (data.get(key) or '') if optional else data[key]
    if not isinstance(value, str):
        raise TypeError(f'"{key}" must be a string')
    return value


def outcome_from_json(data: JsonDict) -> TestOutcome:
    if not isinstance(data, dict):
        raise TypeError('each test must be an object')
    details = data.get('details') or {}
    if not isinstance(details, dict):
        raise TypeError('"details" must be an object')
    return TestOutcome(
        name=_str(data, 'name'),
        status=TestStatus(data['status']),
        message=_str(data, 'message', optional=True),
        details=details,
        recorded_at=parse_timestamp(data.get('timestamp')))


def suite_from_json(data: JsonDict) -> SuiteResult:
    """Rebuild a suite from its outcomes.

    The stored tallies must agree with the outcomes, otherwise the file is inconsistent.
    """
    if not isinstance(data, dict):
        raise TypeError('each test suite must be an object')
    suite = SuiteResult(
        name=_str(data, 'name'),
        description=_str(data, 'description', optional=True),
        started_at=parse_timestamp(data['start_time']),
        ended_at=parse_timestamp(data.get('end_time')),
        duration_ms=_int(data, 'duration_ms'))
    tests = data['tests']
    if not isinstance(tests, list):
        raise TypeError('"tests" must be a list')
    for test in tests:
        suite.add(outcome_from_json(test))
    for tally in ('passed', 'failed', 'skipped'):
        if tally in data and _int(data, tally) != getattr(suite, tally):
            raise ValueError(f'suite "{suite.name}" count "{tally}" does not match its tests')
    return suite


def check_summary(summary: Summary, suites: tuple[SuiteResult, ...]):
    """Raise ValueError if the stored summary disagrees with the suites it summarizes."""
    for key, stored, counted in [
        ('total_tests', summary.total, sum(suite.total for suite in suites)),
        ('passed_tests', summary.passed, sum(suite.passed for suite in suites)),
        ('failed_tests', summary.failed, sum(suite.failed for suite in suites)),
        ('skipped_tests', summary.skipped, sum(suite.skipped for suite in suites)),
    ]:
        if stored != counted:
            raise ValueError(f'"{key}" is {stored} but the suites hold {counted}')
    expected_rate = success_rate(summary.passed, summary.total)
    if summary.success_rate != expected_rate:
        raise ValueError(f'"success_rate" is {summary.success_rate} but should be {expected_rate}')


def from_json(data: JsonDict) -> ResultSet:
    """Convert a dict as created by to_json() back into a ResultSet.

    Raises:
        KeyError, TypeError or ValueError if the data is malformed
    """
    if not isinstance(data, dict):
        raise TypeError('results must be a JSON object')
    version = data.get('results_format', 1)
    if version != RESULTS_FORMAT:
        raise ValueError(f'unsupported results format {version}')
    summ = data['summary']
    if not isinstance(summ, dict):
        raise TypeError('"summary" must be an object')
    suites_data = data['test_suites']
    if not isinstance(suites_data, list):
        raise TypeError('"test_suites" must be a list')
    suites = tuple(suite_from_json(suite) for suite in suites_data)
    summary = Summary(
        total=_int(summ, 'total_tests'),
        passed=_int(summ, 'passed_tests'),
        failed=_int(summ, 'failed_tests'),
        skipped=_int(summ, 'skipped_tests'),
        success_rate=_int(summ, 'success_rate'),
        started_at=parse_timestamp(summ['start_time']),
        ended_at=parse_timestamp(summ.get('end_time')),
        duration_ms=_int(summ, 'duration_ms'))
    check_summary(summary, suites)
    return ResultSet(summary=summary, suites=suites)


def dumps(data: JsonDict) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def read_file(path: str) -> str:
    """Read a text file, decompressing it first if it ends in .zst"""
    with open(path, 'rb') as f:
        raw = f.read()
    if path.endswith(COMPRESS_EXT):
        raw = zstd.decompress(raw)
    return raw.decode(CHARMAP)


def parse_results(text: str, source: str = '<string>') -> ResultSet:
    """Parse the contents of a results file.

    Raises:
        ReportLoadError if the contents are not a valid ResultSet
    """
    try:
        return from_json(json.loads(text))
    except (KeyError, TypeError, ValueError) as e:
        # json.JSONDecodeError is a ValueError
        detail = f'missing field {e}' if isinstance(e, KeyError) else str(e)
        raise ReportLoadError(f'Invalid results file {source}: {detail}') from e


def load_results(path: str) -> ResultSet:
    """Load a results file, which may be zstd compressed.

    Raises:
        ReportLoadError if the file is missing, unreadable or malformed
    """
    logging.info('Reading test results from %s', path)
    try:
        text = read_file(path)
    except FileNotFoundError as e:
        raise ReportLoadError(f'Results file does not exist: {path}') from e
    except OSError as e:
        raise ReportLoadError(f'Cannot read results file {path}: {e}') from e
    except (zstd.Error, UnicodeDecodeError) as e:
        raise ReportLoadError(f'Cannot decode results file {path}: {e}') from e
    return parse_results(text, path)


def write_temp(path: str, data: Union[str, bytes]) -> str:
    """Write data to a new temporary file beside path and return the temporary file's name.

    The temporary file is removed if it can't be completely written.
    """
    if isinstance(data, str):
        data = data.encode(CHARMAP)
    dirname = os.path.dirname(path) or '.'
    with tempfile.NamedTemporaryFile(dir=dirname, prefix='.tmp', delete=False) as tmp:
        try:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
            os.chmod(tmp.name, 0o644)
        except:  # noqa: E722
            os.unlink(tmp.name)
            raise
    logging.debug('Wrote %d bytes for %s', len(data), path)
    return tmp.name


def write_atomic_all(files: dict[str, Union[str, bytes]]):
    """Write several files so that none of them is replaced unless all could be written.

    Every file is first written to a temporary file in its destination directory; only then are
    they renamed into place. On any error the remaining temporary files are removed.
    """
    pending = []  # type: list[tuple[str, str]]
    try:
        for path, data in files.items():
            pending.append((write_temp(path, data), path))
        while pending:
            tmpname, path = pending[0]
            os.replace(tmpname, path)
            pending.pop(0)
    finally:
        for tmpname, _ in pending:
            os.unlink(tmpname)


def write_atomic(path: str, data: Union[str, bytes]):
    """Write a file in one step so no partial file is ever visible at path.

    The data is written to a temporary file in the same directory which is then renamed over the
    destination. The temporary file is removed if anything goes wrong.
    """
    write_atomic_all({path: data})


def write_results(path: str, results: ResultSet):
    """Write a results file atomically."""
    write_atomic(path, dumps(to_json(results)) + '\n')
