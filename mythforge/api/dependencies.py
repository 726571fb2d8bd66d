"""FastAPI dependencies for common operations."""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict

from fastapi import HTTPException

from ..exceptions import MythforgeError
from ..seed import SeedConfig, parse_seed

# Thread executor for blocking operations
executor = ThreadPoolExecutor(max_workers=4)


def parse_seed_payload(seed: Dict[str, Any]) -> SeedConfig:
    """Validate an inline seed from a request body.

    Raises:
        HTTPException: 400 if the seed is not valid
    """
    try:
        return parse_seed(seed, path="<request>")
    except MythforgeError as e:
        detail = e.user_message
        if e.help_text:
            detail += f". {e.help_text}"
        raise HTTPException(status_code=400, detail=detail)


async def run_blocking(func: Callable, *args: Any) -> Any:
    """Run a synchronous engine call on the worker pool."""
    return await asyncio.get_running_loop().run_in_executor(executor, func, *args)
