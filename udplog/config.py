"""Configuration loaded from environment variables (and an optional .env file)."""

import logging
import os

from dotenv import load_dotenv

from .store import DEFAULT_CAPACITY
from .transport import DEFAULT_BUFFER_SIZE

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'

# Levels understood by both logging and uvicorn, plus common aliases
LOG_LEVELS = {'CRITICAL', 'ERROR', 'WARNING', 'INFO', 'DEBUG'}
LOG_LEVEL_ALIASES = {'WARN': 'WARNING', 'FATAL': 'CRITICAL'}


def parse_log_level(value: str) -> str:
    """Normalize a level name, raising ValueError for names uvicorn rejects."""
    level = value.strip().upper()
    level = LOG_LEVEL_ALIASES.get(level, level)
    if level not in LOG_LEVELS:
        raise ValueError(f'Unsupported log level: {value!r}')
    return level


def load_config() -> dict:
    """Load configuration from environment variables."""
    load_dotenv()

    return {
        'udp': {
            'host': os.getenv('UDP_HOST', '0.0.0.0'),
            'port': int(os.getenv('UDP_PORT', '514')),
            'buffer_size': int(os.getenv('UDP_BUFFER_SIZE', str(DEFAULT_BUFFER_SIZE))),
            'timeout_seconds': float(os.getenv('UDP_TIMEOUT_SECONDS', '1.0')),
        },
        'http': {
            'host': os.getenv('HTTP_HOST', '0.0.0.0'),
            'port': int(os.getenv('HTTP_PORT', '8080')),
        },
        'log_file': os.getenv('LOG_FILE', 'app.log'),
        'retention': {
            'capacity': int(os.getenv('RETENTION_CAPACITY', str(DEFAULT_CAPACITY))),
        },
        'log_level': parse_log_level(os.getenv('LOG_LEVEL', 'INFO')),
    }


def configure_logging(level: str = 'INFO'):
    """Configure root logging for the daemon's own diagnostics (stderr)."""
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
