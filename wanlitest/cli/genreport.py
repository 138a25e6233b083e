"""Generate HTML and JSON reports from a results file or an archived result set."""

import argparse
import datetime
import logging
import os
import sys

from wanlitest import analysis
from wanlitest import archive
from wanlitest import argparsing
from wanlitest import config
from wanlitest import log
from wanlitest import render
from wanlitest import resultio
from wanlitest import summarize
from wanlitest.resultdef import ResultSet


def parse_args(args=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description='Create test reports from a test results file')
    argparsing.arguments_logging(parser)
    argparsing.arguments_config(parser)
    argparsing.arguments_reports(parser)
    parser.add_argument(
        '--pass-threshold',
        type=argparsing.percentage,
        help='Lowest success rate considered a pass')
    parser.add_argument(
        '--partial-threshold',
        type=argparsing.percentage,
        help='Lowest success rate considered a partial pass')
    parser.add_argument(
        '--text',
        action='store_true',
        help='Only show a text summary instead of writing reports')
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        '--input',
        help='Results file to read, optionally zstd compressed '
             '(default: results_file in the report directory)')
    source.add_argument(
        '--archived',
        metavar='NAME',
        help='Report on this result set from the archive instead of a results file')
    source.add_argument(
        '--list-archive',
        action='store_true',
        help='List the names of the archived result sets and exit')
    return parser.parse_args(args=args)


def thresholds(args: argparse.Namespace) -> tuple[int, int]:
    pass_threshold = args.pass_threshold
    if pass_threshold is None:
        pass_threshold = int(config.get('verdict_pass_threshold'))
    partial_threshold = args.partial_threshold
    if partial_threshold is None:
        partial_threshold = int(config.get('verdict_partial_threshold'))
    return pass_threshold, partial_threshold


def load(args: argparse.Namespace) -> ResultSet:
    """Load the result set selected on the command line."""
    if args.archived:
        return archive.load(args.archived)
    return resultio.load_results(args.input or argparsing.report_path(args, 'results_file'))


def main():
    args = parse_args()
    log.setup(args)

    if args.list_archive:
        for name in archive.list_archive():
            print(name)
        return

    try:
        results = load(args)
    except resultio.ReportLoadError as e:
        logging.error('%s', e)
        sys.exit(1)

    report = analysis.analyze(results)
    try:
        verdict = render.report_verdict(report, *thresholds(args))
    except ValueError as e:
        logging.error('%s', e)
        sys.exit(1)

    print(''.join(summarize.summarize_totals(results, details=True)
                  + summarize.summarize_analysis(report, verdict)), end='')
    if args.text:
        return

    now = datetime.datetime.now(datetime.timezone.utc)
    html = render.render_html(report, config.expand('report_title'), verdict, now)
    enhanced = resultio.dumps(render.enhanced_json(report, verdict, now)) + '\n'
    htmlfn = argparsing.report_path(args, 'report_html_file')
    jsonfn = argparsing.report_path(args, 'report_json_file')

    if args.dry_run:
        logging.info('Not writing %s or %s due to --dry-run', htmlfn, jsonfn)
        return

    try:
        os.makedirs(os.path.dirname(htmlfn), exist_ok=True)
        os.makedirs(os.path.dirname(jsonfn), exist_ok=True)
        # Neither report is replaced unless both can be written
        resultio.write_atomic_all({htmlfn: html, jsonfn: enhanced})
    except OSError as e:
        logging.error('Cannot write report: %s', e)
        sys.exit(1)
    print('HTML report written to', htmlfn)
    print('JSON report written to', jsonfn)


if __name__ == '__main__':
    main()
