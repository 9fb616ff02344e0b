# File: src/kvcodec/base/config.py
"""
Environment and execution context detection utilities.

The codec itself never reads ambient state in the middle of a call; these
helpers are consulted when options objects are built and when the logging
layer decides whether to colour its output. recursion_headroom() is the
exception: it wraps each recursive walk. Overrides are thread-local so
tests can flip them without leaking into other threads.

Exports:
- in_test_mode(): check or override whether code is in test mode.
- in_desktop_mode(): check or override whether output goes to an interactive terminal.
- env_int(): read an integer setting from the environment with a fallback.
- recursion_headroom(): temporarily raise the interpreter recursion limit.
"""

from __future__ import annotations

import os
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass


_tls = threading.local()


@dataclass
class TLSAttrs:
    """Thread-local flags for environment context."""

    in_test_mode_override: bool | None = None
    in_desktop_mode_override: bool | None = None


def _get_tls() -> TLSAttrs:
    """Return the current thread's TLSAttrs instance, initializing if needed."""
    try:
        return _tls.state
    except AttributeError:
        _tls.state = TLSAttrs()
        return _tls.state


def in_test_mode(
    *,
    unset_override: bool = False,
    override: bool | None = None,
) -> bool:
    """
    Check if running in test mode, with optional override.

    Detection order:
      1. Explicit override (thread-local).
      2. Presence of pytest/unittest in sys.modules.
      3. Known environment variables (e.g. PYTEST_CURRENT_TEST, CI).

    :param unset_override: If True, clears any prior override for this thread.
    :param override: If True or False, sets the override for this thread.
    :return: True if test mode is active, False otherwise.
    """
    tls = _get_tls()
    if unset_override:
        tls.in_test_mode_override = None
    if override is not None:
        tls.in_test_mode_override = override
        return override
    if tls.in_test_mode_override is not None:
        return tls.in_test_mode_override
    if "pytest" in sys.modules or "unittest" in sys.modules:
        return True

    env = os.environ
    return bool(
        any(env.get(k) for k in ("PYTEST_CURRENT_TEST", "PYTEST_RUNNING"))
        or env.get("CI") == "true"
        or env.get("KVCODEC_TEST_MODE") == "1"
    )


def in_desktop_mode(
    *,
    unset_override: bool = False,
    override: bool | None = None,
) -> bool:
    """
    Determine if output should be formatted for interactive display.

    Rules:
      - Explicit override wins.
      - NO_COLOR disables it.
      - Returns True in test mode.
      - Otherwise True only when stderr is a terminal.

    :param unset_override: If True, clears any prior override for this thread.
    :param override: If True or False, sets the override for this thread.
    :return: True if desktop mode is active, False otherwise.
    """
    tls = _get_tls()
    if unset_override:
        tls.in_desktop_mode_override = None
    if override is not None:
        tls.in_desktop_mode_override = override
        return override
    if tls.in_desktop_mode_override is not None:
        return tls.in_desktop_mode_override

    if os.environ.get("NO_COLOR"):
        return False
    if in_test_mode():
        return True
    stream = sys.stderr
    return bool(stream is not None and hasattr(stream, "isatty") and stream.isatty())


def env_int(name: str, default: int, *, minimum: int = 1) -> int:
    """
    Return an integer from the environment variable `name`.

    Blank, malformed or too-small values fall back to `default`.
    """
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw, 10)
    except ValueError:
        return default
    return value if value >= minimum else default


@contextmanager
def recursion_headroom(frames: int) -> Iterator[None]:
    """
    Raise the interpreter's recursion limit by `frames` for the duration of the block.

    The previous limit is restored on exit unless another caller changed it
    in the meantime.
    """
    previous = sys.getrecursionlimit()
    raised = previous + frames
    sys.setrecursionlimit(raised)
    try:
        yield
    finally:
        if sys.getrecursionlimit() == raised:
            sys.setrecursionlimit(previous)


# End of file: src/kvcodec/base/config.py
