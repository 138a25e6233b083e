"""Command-line options shared by the wanlitest programs."""

import argparse
import ast
import os
from typing import Any, Iterable

from wanlitest import config


class ExpandUserFileName:
    """argparse type that expands ~ in a file name and checks it can be used in the given mode.

    The name is returned rather than an open file so the caller decides when to open it. A file
    that is to be written but doesn't exist yet only needs a writable directory.
    """

    def __init__(self, mode: str = 'r'):
        self.mode = mode

    def __call__(self, filename: str) -> str:
        fn = os.path.expanduser(filename)
        writing = any(c in self.mode for c in 'wxa+')
        if writing and not os.path.exists(fn):
            path, wanted = os.path.dirname(fn) or '.', os.W_OK
        else:
            path = fn
            wanted = ((os.R_OK if 'r' in self.mode or '+' in self.mode else 0)
                      | (os.W_OK if writing else 0))
        if not os.access(path, wanted):
            raise argparse.ArgumentTypeError(f'{fn} does not exist or have permission')
        return fn


class ImpliesAction(argparse.Action):
    """A flag that sets its own attribute and every attribute named in implies to True."""

    def __init__(self, option_strings, dest: str, implies: Iterable[str] = (), **kwargs):
        super().__init__(option_strings, dest, nargs=0, default=False, **kwargs)
        self.implies = list(implies)

    def __call__(self, parser, namespace, values, option_string=None):
        for attr in [self.dest, *self.implies]:
            setattr(namespace, attr, True)


def parse_assignment(assignment: str) -> tuple[str, Any]:
    """Split NAME=VALUE, evaluating VALUE as a Python literal (empty means '')."""
    name, sep, rawval = assignment.partition('=')
    if not sep:
        raise argparse.ArgumentTypeError(f'Missing = in {assignment}')
    # Errors from literal_eval are left to describe the problem themselves
    return name, ast.literal_eval(rawval) if rawval else ''


class OverrideConfigAction(argparse.Action):
    """Apply a --set NAME=VALUE config override as soon as it is parsed."""

    def __init__(self, option_strings, dest: str, **kwargs):
        super().__init__(option_strings, dest, nargs=1, metavar='NAME=VALUE', **kwargs)

    def __call__(self, parser, namespace, values, option_string=None):
        for assignment in values:
            config.add_override(*parse_assignment(assignment))


def percentage(value: str) -> int:
    """argparsing type for an integer percentage."""
    try:
        pct = int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f'{value} is not an integer') from e
    if not 0 <= pct <= 100:
        raise argparse.ArgumentTypeError(f'{value} is not between 0 and 100')
    return pct


def arguments_config(parser: argparse.ArgumentParser):
    """Add the --set option for overriding configuration values."""
    parser.add_argument(
        '--set',
        action=OverrideConfigAction,
        help='Override a configuration value (VALUE is a Python literal)')


def arguments_logging(parser: argparse.ArgumentParser):
    """Add options controlling logging and whether files are written."""
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help="Go through the motions but don't write any files")
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Show progress messages')
    parser.add_argument(
        '--debug',
        action=ImpliesAction,
        implies=['verbose'],
        help='Show debug messages (implies --verbose)')
    parser.add_argument(
        '--level-prefix',
        action='store_true',
        help='Prefix each log message with its syslog priority as <N>')
    parser.add_argument(
        '--log-file',
        type=ExpandUserFileName('a'),
        help='Also append log messages to this file')


def arguments_reports(parser: argparse.ArgumentParser):
    """Add arguments needed for locating the results and report files."""
    parser.add_argument(
        '--report-dir',
        help='Directory holding the results file and generated reports '
             '(default: report_dir config value)')


def report_path(args: argparse.Namespace, filevar: str) -> str:
    """Return the path in the report directory of the file named by the given config variable.

    This is called after parsing so that --set overrides are taken into account.
    """
    report_dir = args.report_dir or config.expand('report_dir')
    return os.path.join(os.path.expanduser(report_dir), config.expand(filevar))
