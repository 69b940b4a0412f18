import logging
import os

from .errors import SourceError

logger = logging.getLogger(__name__)

EXTENSION = '.tisp'


def fetch_code(filename):
    # validate file extension
    if not filename.endswith(EXTENSION):
        raise SourceError(f'Your code must be written in a {EXTENSION} file: {filename}')

    if not os.path.isfile(filename):
        raise SourceError(f'Cannot compile\nMissing source file: {filename}')

    # return source code
    logger.info(f'Reading code from: {filename}')
    with open(filename, 'r') as f:
        return f.read()
