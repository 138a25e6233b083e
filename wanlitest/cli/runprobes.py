"""Probe the application under test and write a results file."""

import argparse
import logging
import os
import sys

from wanlitest import archive
from wanlitest import argparsing
from wanlitest import config
from wanlitest import log
from wanlitest import probe
from wanlitest import resultio
from wanlitest import summarize
from wanlitest.collector import ResultCollector


def parse_args(args=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description='Check the availability and response time of the application under test')
    argparsing.arguments_logging(parser)
    argparsing.arguments_config(parser)
    argparsing.arguments_reports(parser)
    parser.add_argument(
        '--baseurl',
        help='Root URL of the application (default: base_url config value)')
    parser.add_argument(
        '--timeout',
        type=float,
        help='Seconds to wait for each response')
    parser.add_argument(
        '--concurrency',
        type=int,
        help='Number of simultaneous requests in the concurrent request check')
    parser.add_argument(
        '--archive',
        action='store_true',
        help='Also store the results in the results archive')
    return parser.parse_args(args=args)


def main():
    args = parse_args()
    log.setup(args)

    baseurl = args.baseurl or config.expand('base_url')
    collector = ResultCollector()
    probe.run_probes(collector, baseurl, timeout=args.timeout, concurrency=args.concurrency)
    results = collector.finalize()
    summarize.show_totals(results, details=True)

    if args.dry_run:
        logging.info('Not writing results due to --dry-run')
    else:
        path = argparsing.report_path(args, 'results_file')
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            resultio.write_results(path, results)
            print('Results written to', path)
            if args.archive:
                archive.store(results)
        except OSError as e:
            logging.error('Cannot write results: %s', e)
            sys.exit(1)

    sys.exit(1 if results.summary.failed else 0)


if __name__ == '__main__':
    main()
