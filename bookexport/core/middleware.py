"""Request correlation middleware.

The id comes from the configured header (``X-Request-ID`` by default) or is
generated, is visible to log records through ``core.logging`` while the
request runs, and is echoed on the response together with the elapsed time.
"""

from __future__ import annotations

import time
import uuid
from typing import Awaitable, Callable

from fastapi import Request, Response

from bookexport.core.config import settings
from bookexport.core.logging import clear_request_id, set_request_id

DURATION_HEADER = "X-Request-Duration-ms"


async def request_id_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    header = settings.log.request_id_header
    request_id = request.headers.get(header) or uuid.uuid4().hex

    started = time.perf_counter()
    set_request_id(request_id)
    try:
        response = await call_next(request)
    finally:
        clear_request_id()
    elapsed_ms = (time.perf_counter() - started) * 1000

    response.headers[header] = request_id
    response.headers.setdefault(DURATION_HEADER, f"{elapsed_ms:.2f}")
    return response
