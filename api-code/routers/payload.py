from __future__ import annotations

import json
import logging
from typing import Any, Optional

from fastapi import Request


logger = logging.getLogger("deploy-bot.webhooks")


async def read_json_body(request: Request) -> Optional[Any]:
    """Parse the request body as JSON, returning None when it is not JSON."""
    raw = await request.body()
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Ignoring non-JSON body on %s (%d bytes)", request.url.path, len(raw))
        return None
