"""Runtime settings read from the environment.

Settings are read once, when the module is imported.

* ``DATAVERBS_DISPLAY_MAX_ROWS``: how many rows are shown when
  a store is printed (default 20).
* ``DATAVERBS_DISPLAY_MAX_WIDTH``: longest text shown in a single
  cell before it gets truncated (default 30).
"""

from os import environ


def int_setting(name: str, default: int) -> int:
    """Read a positive integer setting from the environment.

    :param name: The environment variable to read.
    :param default: The value used when the variable is not set.
    """
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default

    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e

    if value <= 0:
        raise ValueError(f"{name} must be a positive integer, got {value}")
    return value


DISPLAY_MAX_ROWS = int_setting("DATAVERBS_DISPLAY_MAX_ROWS", 20)
DISPLAY_MAX_WIDTH = int_setting("DATAVERBS_DISPLAY_MAX_WIDTH", 30)
