"""Per-execution context attached to log records.

The context holds the current trace and span ids and, while a corpus is
being loaded or queried, the corpus name. :class:`JsonFormatter` copies all
three into every structured log line, so lines from a multi-corpus process
can be told apart. It lives in a :class:`~contextvars.ContextVar` and is
therefore private to each thread and task.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from uuid import uuid4


trace_context: ContextVar[dict | None] = ContextVar("trace_context", default=None)


def _new_ids() -> dict[str, str]:
    return {"trace_id": uuid4().hex, "span_id": uuid4().hex[:16]}


def get_trace_context() -> dict:
    """Return the current context, starting a fresh trace when there is none."""
    ctx = trace_context.get()
    if ctx is None or not ctx.get("trace_id"):
        ctx = {**(ctx or {}), **_new_ids()}
        trace_context.set(ctx)
    return ctx


def set_trace_context(trace_id: str, span_id: str, **extra: object) -> None:
    """Replace the context for the current execution context."""
    trace_context.set({"trace_id": trace_id, "span_id": span_id, **extra})


def update_span_id(span_id: str) -> None:
    """Update span_id while preserving trace_id and any bound corpus."""
    ctx = trace_context.get() or {}
    trace_context.set({**ctx, "span_id": span_id})


@contextmanager
def bind_corpus(name: str) -> Iterator[dict]:
    """Tag log records emitted inside the block with corpus ``name``.

    The previous context, including its span id, is restored on exit.
    """
    token = trace_context.set({**get_trace_context(), "corpus": name})
    try:
        yield trace_context.get()
    finally:
        trace_context.reset(token)
