import json
from collections.abc import AsyncGenerator, AsyncIterable
from typing import Any


async def iter_sse_data(lines: AsyncIterable[str]) -> AsyncGenerator[Any]:
    """Yield the decoded JSON payload of every ``data:`` line.

    Comment lines (keepalives) and other fields are skipped.
    """
    async for line in lines:
        if not line.startswith("data: "):
            continue
        yield json.loads(line[6:])
