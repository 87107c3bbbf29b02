"""
Process-wide logging setup for scripts and hosts embedding the client.

The library modules only create module loggers; configuring handlers is
left to whoever runs the process.
"""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger. Unknown level names fall back to INFO."""
    logging.basicConfig(
        format=LOG_FORMAT,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )
