from __future__ import annotations

import logging
import os
from pathlib import Path


logger = logging.getLogger("deploy-bot.env")


def load_local_env(env_path: Path | str = Path(".env")) -> int:
    """Load key=value pairs from a local .env file.

    Variables already present in the process environment win over the file.
    Returns the number of variables that were set.
    """
    path = Path(env_path)
    if not path.exists():
        return 0

    loaded = 0
    for raw_line in path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        if "=" not in line:
            logger.warning("Skipping malformed .env line: %s", raw_line)
            continue

        key, value = line.split("=", 1)
        clean_key = key.strip()
        if not clean_key or clean_key in os.environ:
            continue
        os.environ[clean_key] = value.strip().strip('"').strip("'")
        loaded += 1

    logger.debug("Loaded %d variable(s) from %s", loaded, path)
    return loaded
