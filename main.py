"""Entry point for the udp-logger daemon."""

import logging

from udplog.config import configure_logging, load_config
from udplog.daemon import run

logger = logging.getLogger('udp-logger')


def main():
    config = load_config()
    configure_logging(config['log_level'])
    logger.info('Configuration loaded')
    run(config)


if __name__ == '__main__':
    main()
