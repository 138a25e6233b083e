"""wanlitest default configuration file

Every configuration element ever used in the program must exist here.
These defaults may be overridden in the user's wanlitestrc file or with --set on the command line.

The variables guaranteed to be available are set in config.environ()
"""


# Root URL of the application under test
base_url = 'http://localhost:8080'

# Seconds to wait for a single HTTP response
request_timeout_secs = 30

# Number of times to retry a failed HTTP connection, and the backoff factor between them
max_retries = 3
retry_backoff_secs = 1

# Directory in which the results file and the reports are written
report_dir = 'integration-tests/reports'

# File names within report_dir
results_file = 'integration-test-results.json'
report_html_file = 'integration-test-report.html'
report_json_file = 'integration-test-report.json'

# Title shown at the top of the HTML report
report_title = 'Wanli Academy Integration Test Report'

# Path to the archive of past results
archive_path = '{XDG_DATA_HOME}/wanlitest/archive'

# Don't compress an archived file if it's shorter than this length.
# 128 is the normal maximum length allowed for data inline in ext4 inodes.
compress_threshold_bytes = 128

# Success rate (percent) at or above which a run is considered a pass
verdict_pass_threshold = 90

# Success rate (percent) at or above which a run that isn't a pass is considered partial
verdict_partial_threshold = 70

# Endpoints checked one at a time as (test name, path, maximum response time in ms)
probe_endpoints = [
    ('Health check response time', '/actuator/health', 100),
    ('Swagger UI response time', '/swagger-ui/index.html', 500),
    ('API docs response time', '/v3/api-docs', 500),
]

# Endpoint hit by the concurrent request check
concurrent_probe_path = '/actuator/health'

# Number of simultaneous requests in the concurrent request check
concurrent_requests = 10

# Percentage of concurrent requests that must succeed for the check to pass
concurrent_success_threshold = 90
