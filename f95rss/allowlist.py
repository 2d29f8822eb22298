"""
Allow-list file reader

One thread id per line; blank lines are ignored. A line that is not an
integer makes the whole file invalid.
"""

import logging
from typing import List

from f95rss.exceptions import ConfigError

# Retrieve main logger
logger = logging.getLogger("main")


def read_allowed_ids(path) -> List[int]:
    """Return the ids in file order, duplicates included. Raises ConfigError."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            lines = f.readlines()
    except OSError as e:
        raise ConfigError(f"Cannot read allow-list {path}: {e.strerror}") from e
    except UnicodeDecodeError as e:
        raise ConfigError(f"Allow-list {path} is not valid UTF-8 (byte {e.start})") from e

    ids = []
    for lineno, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            ids.append(int(line))
        except ValueError as e:
            raise ConfigError(f"Allow-list {path} line {lineno} is not an integer: {line!r}") from e

    logger.debug(f"Read {len(ids)} ids from allow-list {path}")
    return ids
