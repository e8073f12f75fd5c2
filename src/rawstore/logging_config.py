"""Process-wide logging setup for the rawstore CLI."""

from __future__ import annotations

import logging
import sys

logger = logging.getLogger("rawstore")


def setup_logging(verbose: bool = False) -> None:
    """Configure the root logger. Call once at startup."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - [%(levelname)s] - %(message)s",
        stream=sys.stderr,
        force=True,
    )
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
