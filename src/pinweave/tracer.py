"""
Hierarchical runtime tracing for pinweave.

A greedy run can take thousands of iterations; the tracer prints nested,
timed spans for the pipeline stages, progress lines for the search and
compact summaries of arrays, pins, colors and moves.
"""

import functools
import hashlib
import json
import sys
import time
from contextlib import contextmanager
from datetime import datetime


class TracerConfig:
    """Where trace lines go and how much of them."""

    def __init__(self):
        self.enabled = False
        self.level = "INFO"
        self.file_path = None
        self.json_output = False
        self._file_handle = None

    def configure(self, enabled=False, level="INFO", file_path=None, json_output=False):
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
    Nested spans with timing, plus events attached to the innermost span.

    Text goes to stderr and, when configured, to a trace file; with JSON
    output enabled each line is followed by a JSON record carrying the
    summarized metadata.
    """

    LEVELS = {"ERROR": 0, "WARN": 1, "INFO": 2, "DEBUG": 3}

    def __init__(self):
        self.config = TracerConfig()
        self._span_stack = []

    @property
    def _depth(self):
        return len(self._span_stack)

    def _should_log(self, level):
        if not self.config.enabled:
            return False
        return self.LEVELS.get(level, 2) <= self.LEVELS.get(self.config.level, 2)

    def _emit(self, line):
        print(line, file=sys.stderr)
        handle = self.config._file_handle
        if handle:
            handle.write(line + "\n")
            handle.flush()

    def _write(self, level, module, func, message, meta=None):
        if not self._should_log(level):
            return

        now = datetime.now()
        timestamp = now.strftime("%H:%M:%S.") + f"{now.microsecond // 1000:03d}"
        location = f"{module}:{func}" if func else module
        self._emit(f"{timestamp} {level:<5} {'  ' * self._depth}{location}  {message}")

        if self.config.json_output:
            self._emit(json.dumps({
                "timestamp": timestamp,
                "level": level,
                "depth": self._depth,
                "module": module,
                "function": func,
                "message": message,
                "meta": {k: summarize(v) for k, v in (meta or {}).items()},
            }))

    @contextmanager
    def span(self, name, module="", **meta):
        """
        Trace a block: a start line, then an end line with the elapsed time.

        A failure inside the block is logged at ERROR with the exception and
        re-raised; the span is closed either way.
        """
        if not self.config.enabled:
            yield
            return

        self._write("INFO", module, name, f"start {_format_meta(meta)}".strip(), meta)
        start_time = time.perf_counter()
        self._span_stack.append((name, module, start_time))

        try:
            yield
        except Exception as e:
            self._span_stack.pop()
            elapsed = (time.perf_counter() - start_time) * 1000
            self._write("ERROR", module, name, f"failed dt={elapsed:.0f}ms error={type(e).__name__}: {str(e)[:100]}")
            raise
        self._span_stack.pop()
        elapsed = (time.perf_counter() - start_time) * 1000
        self._write("INFO", module, name, f"end ok dt={elapsed:.0f}ms")

    def _location(self):
        if not self._span_stack:
            return "", ""
        func, module, _ = self._span_stack[-1]
        return module, func

    def event(self, message, level="INFO", **meta):
        """Log a one-off event within the current span."""
        if not self._should_log(level):
            return
        module, func = self._location()
        self._write(level, module, func, f"{message} {_format_meta(meta)}".strip(), meta)

    def progress(self, done, total, **meta):
        """
        Report how far a long loop has come.

        The rate is measured from the start of the innermost span, so the
        line reads e.g. "line 200/4000 (5.0%, 812.4/s) best=1530.0".
        """
        if not self._should_log("INFO"):
            return
        module, func = self._location()
        percent = 100.0 * done / total if total else 100.0
        message = f"line {done}/{total} ({percent:.1f}%"
        if self._span_stack:
            elapsed = time.perf_counter() - self._span_stack[-1][2]
            if elapsed > 0:
                message += f", {done / elapsed:.1f}/s"
        message += ")"
        self._write("INFO", module, func, f"{message} {_format_meta(meta)}".strip(), meta)


def _format_meta(meta):
    return " ".join(f"{k}={summarize(v)}" for k, v in meta.items())


def summarize(obj, max_len=200):
    """
    Summarize an object for a trace line, never longer than max_len.

    Arrays are reduced to dtype, shape and a short content hash; moves,
    paths and results to the numbers that matter when following a search.
    """
    try:
        result = _summarize_impl(obj)
    except Exception:
        return f"<{type(obj).__name__}>"
    if len(result) > max_len:
        return result[:max_len - 3] + "..."
    return result


def _summarize_impl(obj):
    import numpy as np
    from pydantic import BaseModel

    from pinweave.models import ColorPath, Move, OptimizationResult

    if obj is None:
        return "None"

    type_name = type(obj).__name__

    if isinstance(obj, Move):
        return f"Move(path={obj.path_index},{obj.from_pin}->{obj.to_pin},score={obj.score:g})"

    if isinstance(obj, ColorPath):
        return f"ColorPath({obj.hex_color},lines={obj.line_count},at={obj.pins[-1]})"

    if isinstance(obj, OptimizationResult):
        return f"OptimizationResult({obj.policy.value},lines={obj.lines_drawn},halted={obj.halted})"

    if isinstance(obj, BaseModel):
        fields = list(type(obj).model_fields.keys())[:3]
        return f"{type_name}(fields={fields}...)"

    if isinstance(obj, np.ndarray):
        shape = "x".join(str(s) for s in obj.shape)
        payload = obj.tobytes() if 0 < obj.size < 1000 else str(obj.shape).encode()
        return f"ndarray({obj.dtype},{shape},h={hashlib.md5(payload).hexdigest()[:8]})"

    if isinstance(obj, np.generic):
        return str(obj.item())

    if isinstance(obj, (bool, int, float)):
        return str(obj)

    if isinstance(obj, str):
        if len(obj) > 50:
            return f"str(len={len(obj)},h={hashlib.md5(obj.encode()).hexdigest()[:8]})"
        return repr(obj)

    if isinstance(obj, tuple) and 0 < len(obj) <= 4 and all(isinstance(v, (int, float)) for v in obj):
        # pin coordinates and RGB colors
        return "(" + ",".join(f"{v:g}" for v in obj) + ")"

    if isinstance(obj, (list, tuple)):
        if not obj:
            return f"{type_name}(len=0)"
        return f"{type_name}(len={len(obj)},first={type(obj[0]).__name__})"

    if isinstance(obj, dict):
        keys = ",".join(str(k) for k in list(obj.keys())[:5])
        return f"dict(len={len(obj)},keys=[{keys}])"

    if hasattr(obj, "__fspath__"):
        return repr(str(obj))

    return f"<{type_name}>"


def trace(label=None):
    """Decorator that runs the function inside a span named after it."""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if not _tracer.config.enabled:
                return func(*args, **kwargs)
            module = func.__module__.split(".")[-1] if func.__module__ else ""
            with _tracer.span(label or func.__name__, module=module):
                return func(*args, **kwargs)

        return wrapper
    return decorator


_tracer = Tracer()


def get_tracer():
    """Get the global tracer instance."""
    return _tracer


def configure_tracer(enabled=False, level="INFO", file_path=None, json_output=False):
    """Configure the global tracer; an already open trace file is closed first."""
    _tracer.config.configure(
        enabled=enabled,
        level=level,
        file_path=file_path,
        json_output=json_output,
    )


def close_tracer():
    """Flush and close the trace file, if any."""
    _tracer.config.close()
