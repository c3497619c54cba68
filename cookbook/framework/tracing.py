import functools
import inspect
import time
import uuid

from cookbook.framework.logging import Span, current_trace_id, log_span

TRACE_ID_HEADER = "X-Trace-ID"


def start_request_trace(request):
    """
    Bind the request's trace id to the current context.
    Returns the trace id and the token needed to unbind it again.
    """
    trace_id = request.headers.get(TRACE_ID_HEADER)
    if not trace_id:
        # no caller-supplied id, start a fresh trace
        trace_id = "LOCAL-" + str(uuid.uuid4())

    return trace_id, current_trace_id.set(trace_id)


async def tracing_middleware(request, call_next):
    """
    Runs each request under its own trace id, logs a `request` span with the
    outcome and echoes the trace id back in the response headers.
    """
    trace_id, token = start_request_trace(request)
    start = time.time()

    def elapsed():
        return round((time.time() - start) * 1000, 2)

    try:
        response = await call_next(request)
    except Exception as exc:
        log_span(
            "request",
            method=request.method,
            path=request.url.path,
            status=500,
            error=type(exc).__name__,
            duration_ms=elapsed(),
        )
        raise
    else:
        log_span(
            "request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=elapsed(),
        )
        response.headers[TRACE_ID_HEADER] = trace_id
        return response
    finally:
        current_trace_id.reset(token)


def traced(fn):
    """
    Decorator that runs a function, sync or async, inside a span named after it.
    """
    if inspect.iscoroutinefunction(fn):

        @functools.wraps(fn)
        async def async_wrapper(*args, **kwargs):
            with Span(fn.__name__):
                return await fn(*args, **kwargs)

        return async_wrapper

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        with Span(fn.__name__):
            return fn(*args, **kwargs)

    return wrapper
