"""
pos_engines.tracer -- POS_ENGINE_TRACE records for engine calls.

Responsibility:
    ``@traced_engine`` wraps a pure engine method and logs one
    ``POS_ENGINE_TRACE`` record per call: engine name and version, a
    fingerprint of the inputs that determine the result, the outcome and
    the elapsed time.  Two calls with the same fingerprint and version must
    have produced the same result, which is how a finalize can be tied back
    to the exact review it applied.

Architecture position:
    Engines -- observational only.  The wrapper reads arguments and writes a
    log record; it never changes inputs or results.

Fingerprints:
    Arguments are bound to the wrapped signature, so positional and keyword
    calls fingerprint alike.  Frozen dataclasses are canonicalized field by
    field, so a tuple of ``CountObservation`` hashes by content.  Fields not
    supplied are recorded as ``null``.
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import inspect
import logging
import time
from collections.abc import Callable
from enum import Enum
from typing import Any

_logger = logging.getLogger("pos_kernel.engines.tracer")

FINGERPRINT_LENGTH = 16


def _canonicalize(value: Any) -> str:
    """Stable text form of ``value`` for hashing."""
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return _canonicalize(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        body = ",".join(
            f"{f.name}:{_canonicalize(getattr(value, f.name))}"
            for f in dataclasses.fields(value)
        )
        return f"{type(value).__name__}({body})"
    if isinstance(value, dict):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        return "{" + ",".join(f"{k}:{_canonicalize(v)}" for k, v in items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: dict[str, Any],
) -> str:
    """SHA-256 prefix over ``field=value`` pairs in ``fingerprint_fields`` order."""
    canonical = "|".join(
        f"{name}={_canonicalize(arguments.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """
    Decorate an engine entrypoint with POS_ENGINE_TRACE logging.

    Args:
        engine_name: Stable identifier, e.g. ``"count_variance"``.
        engine_version: Bumped whenever the engine's output can change for
            the same input.
        fingerprint_fields: Parameter names whose values determine the
            result.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        def _fingerprint(args: tuple, kwargs: dict) -> str:
            if not fingerprint_fields:
                return ""
            try:
                bound = signature.bind_partial(*args, **kwargs)
            except TypeError:
                # the call itself will raise; fingerprint what was passed by name
                return compute_input_fingerprint(fingerprint_fields, kwargs)
            return compute_input_fingerprint(fingerprint_fields, bound.arguments)

        def _emit(fingerprint: str, outcome: str, t0: float) -> None:
            _logger.info(
                "POS_ENGINE_TRACE",
                extra={
                    "trace_type": "POS_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": fingerprint,
                    "outcome": outcome,
                    "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                    "function": func.__qualname__,
                },
            )

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = _fingerprint(args, kwargs)
            t0 = time.monotonic()
            try:
                result = func(*args, **kwargs)
            except Exception:
                _emit(fingerprint, "error", t0)
                raise
            _emit(fingerprint, "ok", t0)
            return result

        return wrapper

    return decorator
