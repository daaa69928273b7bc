"""
incentive_engines.tracer -- Engine invocation tracer emitting INCENTIVE_ENGINE_TRACE.

Responsibility:
    Provide a lightweight decorator (``@traced_engine``) that wraps pure
    engine invocations with structured trace logging. The trace captures
    engine_name, engine_version, input_fingerprint (deterministic SHA-256
    hash of selected arguments), and duration_ms.

Architecture position:
    Engines -- infrastructure support for the pure calculation layer.
    Emits a log record only; uses its own logger namespace
    (``incentive_kernel.engines.tracer``).

Invariants enforced:
    - Fingerprints are deterministic: values are canonicalized, mapping
      keys sorted, and the hash is SHA-256 truncated to 16 hex chars.
    - Arguments are bound to the engine's signature, so positional and
      keyword calls fingerprint identically.

Usage:
    from incentive_engines.tracer import traced_engine

    @traced_engine("tiers", "1.0", fingerprint_fields=("amount", "tiers"))
    def compute_marginal_payout(amount, tiers, policy=DEFAULT_POLICY):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import inspect
import logging
import time
from collections.abc import Callable, Mapping
from decimal import Decimal
from typing import Any

_logger = logging.getLogger("incentive_kernel.engines.tracer")


def _canonicalize(value: Any) -> str:
    """Stable string form of a value for fingerprinting."""
    if value is None:
        return "null"
    if isinstance(value, Decimal):
        return str(value.normalize()) if value.is_finite() else str(value)
    if isinstance(value, (int, float, str)):
        return str(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _canonicalize({
            f.name: getattr(value, f.name) for f in dataclasses.fields(value)
        })
    if isinstance(value, Mapping):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        return "{" + ",".join(f"{k}:{_canonicalize(v)}" for k, v in items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """
    16-char SHA-256 prefix over the named arguments.

    Missing arguments are recorded as "null".
    """
    parts = [
        f"{name}={_canonicalize(arguments.get(name))}" for name in fingerprint_fields
    ]
    canonical = "|".join(parts)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorator that emits INCENTIVE_ENGINE_TRACE for pure engine invocations."""

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fp = ""
            if fingerprint_fields:
                bound = signature.bind_partial(*args, **kwargs)
                fp = compute_input_fingerprint(fingerprint_fields, bound.arguments)

            t0 = time.monotonic()
            result = func(*args, **kwargs)
            duration_ms = round((time.monotonic() - t0) * 1000, 2)

            _logger.info(
                "INCENTIVE_ENGINE_TRACE",
                extra={
                    "trace_type": "INCENTIVE_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": fp,
                    "duration_ms": duration_ms,
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator
