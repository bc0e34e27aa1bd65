"""OpenTelemetry tracing helpers.

`trace_function` wraps a sync or async callable in a span; `trace_class`
applies it to the public methods of a class. Only the OpenTelemetry API is
used, so spans are no-ops until the host application installs an SDK.

Usage:
    ```python
    @trace_function(span_name='agnes.lookup', kind=SpanKind.CLIENT)
    async def lookup(task_id): ...


    @trace_class(exclude_list=['helper'])
    class Service: ...
    ```
"""

import contextlib
import functools
import inspect
import logging

from collections.abc import Callable, Iterator
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import SpanKind as _SpanKind
from opentelemetry.trace import StatusCode


SpanKind = _SpanKind
__all__ = ['SpanKind', 'trace_class', 'trace_function']

INSTRUMENTING_MODULE_NAME = 'agnes'
INSTRUMENTING_MODULE_VERSION = '0.1.0'

logger = logging.getLogger(__name__)

AttributeExtractor = Callable[[Any, tuple, dict, Any, Exception | None], None]


class _SpanRecorder:
    """Holds the outcome of a traced call for the attribute extractor."""

    def __init__(self) -> None:
        self.result: Any = None
        self.exception: Exception | None = None


@contextlib.contextmanager
def _traced_span(
    span_name: str,
    kind: SpanKind,
    attributes: dict[str, Any] | None,
    attribute_extractor: AttributeExtractor | None,
    args: tuple,
    kwargs: dict,
) -> Iterator[_SpanRecorder]:
    tracer = trace.get_tracer(
        INSTRUMENTING_MODULE_NAME, INSTRUMENTING_MODULE_VERSION
    )
    with tracer.start_as_current_span(span_name, kind=kind) as span:
        for key, value in (attributes or {}).items():
            span.set_attribute(key, value)

        recorder = _SpanRecorder()
        try:
            yield recorder
            span.set_status(StatusCode.OK)
        except Exception as e:
            recorder.exception = e
            span.record_exception(e)
            span.set_status(StatusCode.ERROR, description=str(e))
            raise
        finally:
            if attribute_extractor:
                try:
                    attribute_extractor(
                        span,
                        args,
                        kwargs,
                        recorder.result,
                        recorder.exception,
                    )
                except Exception as attr_e:
                    logger.error(
                        f'attribute_extractor error in span {span_name}: {attr_e}'
                    )


def trace_function(
    func=None,
    *,
    span_name: str | None = None,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: dict[str, Any] | None = None,
    attribute_extractor: AttributeExtractor | None = None,
):
    """Traces each call of a function in its own span.

    Usable bare (`@trace_function`) or with arguments
    (`@trace_function(span_name='x')`).

    Args:
        func: The function to wrap. None when used with arguments.
        span_name: Span name; defaults to `module.qualname` of `func`.
        kind: The span kind. Defaults to `SpanKind.INTERNAL`.
        attributes: Static attributes set on every span.
        attribute_extractor: Called as
            `attribute_extractor(span, args, kwargs, result, exception)` once
            the call finishes, successful or not. Its own errors are logged
            and never propagate.

    Returns:
        The wrapped function, or a decorator when `func` is None.
    """
    if func is None:
        return functools.partial(
            trace_function,
            span_name=span_name,
            kind=kind,
            attributes=attributes,
            attribute_extractor=attribute_extractor,
        )

    actual_span_name = span_name or f'{func.__module__}.{func.__qualname__}'

    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            with _traced_span(
                actual_span_name,
                kind,
                attributes,
                attribute_extractor,
                args,
                kwargs,
            ) as recorder:
                recorder.result = await func(*args, **kwargs)
                return recorder.result

        return async_wrapper

    @functools.wraps(func)
    def sync_wrapper(*args, **kwargs):
        with _traced_span(
            actual_span_name, kind, attributes, attribute_extractor, args, kwargs
        ) as recorder:
            recorder.result = func(*args, **kwargs)
            return recorder.result

    return sync_wrapper


def trace_class(
    include_list: list[str] | None = None,
    exclude_list: list[str] | None = None,
    kind: SpanKind = SpanKind.INTERNAL,
):
    """Class decorator applying `trace_function` to selected methods.

    Dunder methods are never traced. When `include_list` is given only those
    methods are traced; otherwise every method not in `exclude_list` is.
    Async generator methods are left untouched.
    """
    exclude = set(exclude_list or [])

    def decorator(cls):
        for name, method in inspect.getmembers(cls, inspect.isfunction):
            if name.startswith('__') and name.endswith('__'):
                continue
            if include_list is not None and name not in include_list:
                continue
            if include_list is None and name in exclude:
                continue
            if inspect.isasyncgenfunction(method):
                continue
            setattr(
                cls,
                name,
                trace_function(
                    span_name=f'{cls.__module__}.{cls.__name__}.{name}',
                    kind=kind,
                )(method),
            )
        return cls

    return decorator
