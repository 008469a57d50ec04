"""
Logging setup for Roundtable
All modules log under the "roundtable" logger hierarchy.
"""

import logging

LOGGER_NAME = "roundtable"


def configure_logging(debug: bool = False) -> logging.Logger:
    """Attach a stream handler to the root roundtable logger once."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        logger.addHandler(handler)
    return logger
