"""
Request correlation.

Takes ``X-Request-ID`` from the caller or generates one, makes it visible
to every log record written while the request is handled, and echoes it
on the response.
"""

import uuid

from fastapi import Request

from shared.logging_config import request_id_var

REQUEST_ID_HEADER = "X-Request-ID"


async def request_context_middleware(request: Request, call_next):
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    request.state.request_id = request_id
    token = request_id_var.set(request_id)
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)

    response.headers[REQUEST_ID_HEADER] = request_id
    return response
