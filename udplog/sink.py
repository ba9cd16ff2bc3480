"""Append-only text file receiving every ingested record."""

import logging
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


class DurableSink:
    """Writes one record per line to an append-only log file.

    The file is opened at construction so a missing directory or a
    permission problem fails startup instead of the first write.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._file = open(self.path, 'a', encoding='utf-8')
        logger.info('Durable sink opened: %s', self.path)

    def write_line(self, record: str) -> None:
        """Append a record as a single line and flush it to the OS."""
        line = record.replace('\r\n', '\n').replace('\n', '\\n')
        self._file.write(line + '\n')
        self._file.flush()

    @property
    def closed(self) -> bool:
        return self._file.closed

    def close(self):
        """Close the underlying file."""
        if not self._file.closed:
            self._file.close()
            logger.info('Durable sink closed: %s', self.path)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
