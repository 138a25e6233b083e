"""Disk archive of past results files

Transparently compresses and decompresses results, if desired.
"""

import datetime
import io
import logging
import os

import zstd

from wanlitest import config
from wanlitest import resultio
from wanlitest.resultdef import ResultSet


COMPRESS_EXT = resultio.COMPRESS_EXT

# strftime() format of the run start time used in archived file names
NAME_TIME_FMT = '%Y%m%dT%H%M%SZ'


def archive_dir() -> str:
    return config.expand('archive_path')


def create_dirs():
    "Create the archive directory if it doesn't exist"
    os.makedirs(archive_dir(), exist_ok=True)


def archive_name(results: ResultSet, seq: int = 0) -> str:
    """Return the archive file name for a result set, based on when the run started.

    seq distinguishes runs that started within the same second.
    """
    started = results.summary.started_at.astimezone(datetime.timezone.utc)
    stamp = started.strftime(NAME_TIME_FMT)
    return f'results-{stamp}-{seq}.json' if seq else f'results-{stamp}.json'


def name_order(name: str) -> tuple[str, int]:
    """Sort key putting archive names in the order the runs were stored."""
    started, _, seq = name[:-len('.json')].partition('-')[2].partition('-')
    return started, int(seq) if seq.isdigit() else 0


def in_archive(fn: str) -> bool:
    """Returns true if file exists in the archive

    The file may optionally be compressed.
    """
    path = os.path.join(archive_dir(), fn)
    return os.path.exists(path) or os.path.exists(path + COMPRESS_EXT)


def open_archive_file(fn: str):
    """Open an archived file for reading in text mode, decompressing it if necessary."""
    path = os.path.join(archive_dir(), fn)
    try:
        with open(path + COMPRESS_EXT, 'rb') as compress_file:
            return io.StringIO(zstd.decompress(compress_file.read()).decode(resultio.CHARMAP))
    except FileNotFoundError:
        return open(path, 'r', encoding=resultio.CHARMAP)


def load(fn: str) -> ResultSet:
    """Load an archived result set.

    Raises:
        ReportLoadError if it is missing or malformed
    """
    try:
        with open_archive_file(fn) as f:
            text = f.read()
    except OSError as e:
        raise resultio.ReportLoadError(f'Cannot read archived results {fn}: {e}') from e
    return resultio.parse_results(text, fn)


def store(results: ResultSet) -> str:
    """Store a result set into the archive

    It isn't compressed if it's too small.

    Returns:
        path to the stored file
    """
    create_dirs()
    data = (resultio.dumps(resultio.to_json(results)) + '\n').encode(resultio.CHARMAP)
    seq = 0
    # Never replace an earlier run, whether or not it was compressed
    while in_archive(archive_name(results, seq)):
        seq += 1
    path = os.path.join(archive_dir(), archive_name(results, seq))
    if len(data) > config.get('compress_threshold_bytes'):
        data = zstd.compress(data)
        path += COMPRESS_EXT
    resultio.write_atomic(path, data)
    logging.info('Archived results in %s', path)
    return path


def list_archive() -> list[str]:
    """Return the names of all archived result sets, oldest first.

    Names are given without any compression extension, as accepted by load().
    """
    try:
        entries = os.listdir(archive_dir())
    except FileNotFoundError:
        return []
    names = set()
    for entry in entries:
        if entry.endswith(COMPRESS_EXT):
            entry = entry[:-len(COMPRESS_EXT)]
        if entry.startswith('results-') and entry.endswith('.json'):
            names.add(entry)
    return sorted(names, key=name_order)
