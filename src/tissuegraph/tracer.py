"""
Hierarchical runtime tracing for tissuegraph.

Nested spans with timing plus one-off events, written as indented text lines
(or JSON records) to stderr and optionally to a file. Parsing a raster is a
long sequential pass, so spans are the main way to see where it spent time or
where it stopped.
"""

import functools
import hashlib
import json
import sys
import time
from contextlib import contextmanager
from datetime import datetime


class TracerConfig:
    """Output settings for the tracer."""

    def __init__(self):
        self.enabled = False
        self.level = "INFO"
        self.file_path = None
        self.json_output = False
        self._file_handle = None

    def configure(self, enabled=False, level="INFO", file_path=None, json_output=False):
        """Apply new settings, reopening the log file if one is requested."""
        self.close()
        self.enabled = enabled
        self.level = level.upper()
        self.file_path = file_path
        self.json_output = json_output

        if file_path and enabled:
            self._file_handle = open(file_path, "w", encoding="utf-8")

    def close(self):
        if self._file_handle:
            self._file_handle.close()
            self._file_handle = None


class Tracer:
    """
    Span/event tracer.

    Spans nest: every line is indented by the current depth, and a span that
    exits through an exception logs the failure at ERROR before re-raising.
    """

    LEVELS = {"ERROR": 0, "WARN": 1, "INFO": 2, "DEBUG": 3}

    def __init__(self):
        self.config = TracerConfig()
        self._depth = 0
        self._span_stack = []

    def _should_log(self, level):
        if not self.config.enabled:
            return False
        return self.LEVELS.get(level, 2) <= self.LEVELS.get(self.config.level, 2)

    def _timestamp(self):
        now = datetime.now()
        return now.strftime("%H:%M:%S.") + f"{now.microsecond // 1000:03d}"

    def _emit(self, line):
        print(line, file=sys.stderr)
        if self.config._file_handle:
            self.config._file_handle.write(line + "\n")
            self.config._file_handle.flush()

    def _write(self, level, module, func, message, meta=None):
        if not self._should_log(level):
            return

        timestamp = self._timestamp()

        if self.config.json_output:
            record = {
                "timestamp": timestamp,
                "level": level,
                "depth": self._depth,
                "module": module,
                "function": func,
                "message": message,
                "meta": {k: summarize(v) for k, v in (meta or {}).items()},
            }
            self._emit(json.dumps(record))
            return

        location = f"{module}:{func}" if func else module
        self._emit(f"{timestamp} {level:<5} {'  ' * self._depth}{location}  {message}")

    @contextmanager
    def span(self, name, module="", **meta):
        """
        Trace a block as a named span.

        Logs start and end with elapsed milliseconds; nested events and spans
        are indented one level deeper.
        """
        if not self.config.enabled:
            yield
            return

        start = time.perf_counter()
        meta_str = " ".join(f"{k}={summarize(v)}" for k, v in meta.items())
        self._write("INFO", module, name, f"start {meta_str}".strip(), meta)
        self._depth += 1
        self._span_stack.append((name, module))

        try:
            yield
        except Exception as e:
            elapsed = (time.perf_counter() - start) * 1000
            self._depth -= 1
            self._span_stack.pop()
            self._write("ERROR", module, name, f"failed dt={elapsed:.0f}ms error={type(e).__name__}: {str(e)[:120]}")
            raise

        elapsed = (time.perf_counter() - start) * 1000
        self._depth -= 1
        self._span_stack.pop()
        self._write("INFO", module, name, f"end ok dt={elapsed:.0f}ms")

    def event(self, message, level="INFO", **meta):
        """Log a one-off event inside the innermost open span."""
        if not self._should_log(level):
            return

        func, module = self._span_stack[-1] if self._span_stack else ("", "")
        meta_str = " ".join(f"{k}={summarize(v)}" for k, v in meta.items())
        self._write(level, module, func, f"{message} {meta_str}".strip(), meta)


def summarize(obj, max_len=200):
    """
    Compact, length-capped description of an object for log lines.

    Knows numpy arrays, label rasters, tissue graphs, networkx graphs and
    pydantic models; anything else falls back to its type name.
    """
    try:
        result = _summarize_impl(obj)
    except Exception:
        return f"<{type(obj).__name__}>"
    if len(result) > max_len:
        return result[:max_len - 3] + "..."
    return result


def _summarize_impl(obj):
    if obj is None:
        return "None"

    type_name = type(obj).__name__

    # label rasters and tissue graphs describe themselves
    if hasattr(obj, "trace_summary"):
        return obj.trace_summary()

    try:
        import numpy as np
        if isinstance(obj, np.ndarray):
            shape_str = "x".join(str(s) for s in obj.shape)
            if 0 < obj.size < 1000:
                h = hashlib.md5(obj.tobytes()).hexdigest()[:8]
            else:
                h = hashlib.md5(str(obj.shape).encode()).hexdigest()[:8]
            return f"ndarray({obj.dtype},{shape_str},h={h})"
    except ImportError:
        pass

    try:
        import networkx as nx
        if isinstance(obj, nx.Graph):
            return f"{type_name}(nodes={obj.number_of_nodes()},edges={obj.number_of_edges()})"
    except ImportError:
        pass

    try:
        from pydantic import BaseModel
        if isinstance(obj, BaseModel):
            fields = list(type(obj).model_fields.keys())[:3]
            return f"{type_name}(fields={fields}...)"
    except ImportError:
        pass

    if isinstance(obj, str):
        if len(obj) > 50:
            h = hashlib.md5(obj.encode()).hexdigest()[:8]
            return f"str(len={len(obj)},h={h})"
        return repr(obj)

    if isinstance(obj, bytes):
        return f"bytes(len={len(obj)},h={hashlib.md5(obj).hexdigest()[:8]})"

    # positions read better spelled out
    if isinstance(obj, tuple) and len(obj) == 2 and all(isinstance(v, int) for v in obj):
        return f"({obj[0]},{obj[1]})"

    if isinstance(obj, (list, tuple, set, frozenset)):
        if not obj:
            return f"{type_name}(len=0)"
        first = next(iter(obj))
        return f"{type_name}(len={len(obj)},first={type(first).__name__})"

    if isinstance(obj, dict):
        keys = ",".join(str(k) for k in list(obj.keys())[:5])
        return f"dict(len={len(obj)},keys=[{keys}])"

    if isinstance(obj, (int, float)):
        return str(obj)

    return f"<{type_name}>"


def trace(label=None, arg_names=None):
    """
    Decorator running the wrapped function inside a span.

    `arg_names` lists keyword arguments to summarize in the span's start line.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if not _tracer.config.enabled:
                return func(*args, **kwargs)

            module = func.__module__.split(".")[-1] if func.__module__ else ""
            meta = {name: kwargs[name] for name in (arg_names or []) if name in kwargs}

            with _tracer.span(label or func.__name__, module=module, **meta):
                return func(*args, **kwargs)

        return wrapper
    return decorator


_tracer = Tracer()


def get_tracer():
    """Get the process-wide tracer."""
    return _tracer


def configure_tracer(enabled=False, level="INFO", file_path=None, json_output=False):
    """Configure the process-wide tracer."""
    _tracer.config.configure(
        enabled=enabled,
        level=level,
        file_path=file_path,
        json_output=json_output,
    )
