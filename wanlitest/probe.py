"""HTTP probes of the application under test

These checks feed a ResultCollector: one suite times individual endpoints against their limits
and another fires a batch of simultaneous requests and counts how many succeed.
"""

import concurrent.futures
import logging
import time
from dataclasses import dataclass
from typing import Optional, Sequence

import requests
from requests import adapters

import wanlitest
from wanlitest import config
from wanlitest.collector import ResultCollector
from wanlitest.resultdef import TestStatus


# The User-Agent: header to use
USER_AGENT = f'wanlitest/{wanlitest.__version__}'

# name, path, maximum response time in ms
Endpoint = tuple[str, str, int]

ENDPOINT_SUITE = 'Endpoint response time'
CONCURRENT_SUITE = 'Concurrent requests'

# Most threads used to send concurrent requests; larger batches queue for a free thread
MAX_WORKERS = 32


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of a single HTTP request."""

    url: str
    status: int      # HTTP status, or 0 if no response was received
    elapsed_ms: int
    error: str = ''  # transport error, if any

    @property
    def ok(self) -> bool:
        return self.status == 200


class Session(requests.Session):
    """Set up a requests session with a standard configuration"""

    def __init__(self, total: int = 3, backoff_factor: float = 1,
                 status_forcelist: Optional[list[int]] = None,
                 allowed_methods: Optional[list[str]] = None):
        super().__init__()
        if status_forcelist is None:
            status_forcelist = [429, 502, 503, 504]
        if allowed_methods is None:
            allowed_methods = ['HEAD', 'GET', 'OPTIONS']
        self.headers['User-Agent'] = USER_AGENT

        retry_strategy = adapters.Retry(
            total=total, backoff_factor=backoff_factor, status_forcelist=status_forcelist,
            allowed_methods=allowed_methods, raise_on_status=False)
        adapter = adapters.HTTPAdapter(max_retries=retry_strategy)
        self.mount('https://', adapter)
        self.mount('http://', adapter)


def join_url(base_url: str, path: str) -> str:
    return base_url.rstrip('/') + '/' + path.lstrip('/')


def probe(session: requests.Session, url: str, timeout: float) -> ProbeResult:
    """GET a URL and time it.

    A request that fails to get any response at all is reported with status 0 and the error text
    rather than raising.
    """
    start = time.monotonic()
    try:
        resp = session.get(url, timeout=timeout)
        status, error = resp.status_code, ''
    except requests.exceptions.RequestException as e:
        status, error = 0, str(e)
    elapsed = int((time.monotonic() - start) * 1000)
    logging.debug('GET %s: %d in %d ms', url, status, elapsed)
    return ProbeResult(url=url, status=status, elapsed_ms=elapsed, error=error)


def failure_text(result: ProbeResult) -> str:
    if result.error:
        return f'{result.url}: {result.error}'
    return f'{result.url}: status {result.status}'


def probe_endpoints(collector: ResultCollector, session: requests.Session, base_url: str,
                    endpoints: Sequence[Endpoint], timeout: float):
    """Check each endpoint in turn, failing any that are unavailable or too slow."""
    collector.start_suite(ENDPOINT_SUITE, 'Response time of individual API endpoints')
    for name, path, threshold_ms in endpoints:
        result = probe(session, join_url(base_url, path), timeout)
        if not result.ok:
            collector.add_test(name, TestStatus.FAILED, f'Request failed, status {result.status}',
                               {'error': failure_text(result)})
        elif result.elapsed_ms > threshold_ms:
            collector.add_test(name, TestStatus.FAILED,
                               f'Response time over limit: {result.elapsed_ms}ms > {threshold_ms}ms',
                               {'error': f'{result.url}: response timeout after '
                                         f'{result.elapsed_ms}ms'})
        else:
            collector.add_test(name, TestStatus.PASSED,
                               f'Response time: {result.elapsed_ms}ms (limit: {threshold_ms}ms)')
    collector.end_suite()


def fan_out(session: requests.Session, url: str, count: int, timeout: float,
            max_workers: int = MAX_WORKERS) -> list[ProbeResult]:
    """Send count requests to url, up to max_workers at a time, and wait for all of them."""
    with concurrent.futures.ThreadPoolExecutor(max_workers=min(count, max_workers)) as executor:
        futures = [executor.submit(probe, session, url, timeout) for _ in range(count)]
        return [future.result() for future in concurrent.futures.as_completed(futures)]


def probe_concurrent(collector: ResultCollector, session: requests.Session, url: str,
                     count: int, timeout: float, success_threshold: int):
    """Check that enough of a batch of simultaneous requests succeed.

    Args:
        success_threshold: minimum percentage of requests that must succeed
    """
    collector.start_suite(CONCURRENT_SUITE, 'Handling of simultaneous requests')
    name = f'{count} concurrent requests'
    if count <= 0:
        collector.add_test(name, TestStatus.SKIPPED, 'No concurrent requests configured')
        collector.end_suite()
        return

    start = time.monotonic()
    results = fan_out(session, url, count, timeout)
    total_ms = int((time.monotonic() - start) * 1000)
    successes = [r for r in results if r.ok]
    pct = 100 * len(successes) / count
    message = f'{len(successes)} of {count} succeeded in {total_ms}ms'
    if pct >= success_threshold:
        collector.add_test(name, TestStatus.PASSED, message)
    else:
        # Report the first failure as representative
        failure = next((r for r in results if not r.ok), None)
        details = {'error': failure_text(failure)} if failure else {}
        collector.add_test(name, TestStatus.FAILED, message, details)
    collector.end_suite()


def run_probes(collector: ResultCollector, base_url: str, timeout: Optional[float] = None,
               concurrency: Optional[int] = None):
    """Run all probe suites against the application at base_url using configured values."""
    if timeout is None:
        timeout = float(config.get('request_timeout_secs'))
    if concurrency is None:
        concurrency = int(config.get('concurrent_requests'))
    logging.info('Probing %s', base_url)
    with Session(total=int(config.get('max_retries')),
                 backoff_factor=float(config.get('retry_backoff_secs')),
                 status_forcelist=[]) as session:
        probe_endpoints(collector, session, base_url, config.get('probe_endpoints'), timeout)
        probe_concurrent(collector, session,
                         join_url(base_url, config.expand('concurrent_probe_path')),
                         concurrency, timeout, int(config.get('concurrent_success_threshold')))
