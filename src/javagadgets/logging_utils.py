from __future__ import annotations

import logging
import sys


def configure_logging(*, verbose: bool, quiet: bool) -> None:
    """
    Configure process-wide logging defaults for CLI usage.

    - Default: INFO
    - --verbose: DEBUG
    - --quiet: WARNING

    Logging is written to stderr so it does not corrupt machine-readable stdout
    output (JSON reports, diffs).
    """

    if verbose and quiet:
        # The CLI rejects this combination; programmatic callers get DEBUG.
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    fmt = "javagadgets: %(message)s"
    if verbose:
        fmt = "javagadgets [%(levelname)s] %(name)s: %(message)s"

    logging.basicConfig(level=level, format=fmt, stream=sys.stderr, force=True)
