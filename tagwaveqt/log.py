"""Debug trace for the Qt glue, printed to stderr.

Off unless ``TW_DEBUG`` is ``1`` or ``true``.  Lines look like
``[12:03:44.512 PlaybackPoller] poll loop started``; the name is the
caller's class, or its module when called from a plain function.
"""

from __future__ import annotations

import os
import sys
import time

_ENABLED: bool | None = None


def enabled() -> bool:
    global _ENABLED
    if _ENABLED is None:
        _ENABLED = os.environ.get("TW_DEBUG", "").strip().lower() in ("1", "true")
    return _ENABLED


def _origin(depth: int) -> str:
    try:
        frame = sys._getframe(depth + 1)
    except ValueError:
        return "?"
    owner = frame.f_locals.get("self")
    if owner is not None:
        return type(owner).__name__
    module = frame.f_globals.get("__name__") or "?"
    return module.rpartition(".")[2]


def dbg(msg: str, *args) -> None:
    """Trace *msg* (``%``-formatted with *args*) when debugging is on."""
    if not enabled():
        return
    if args:
        msg = msg % args
    now = time.time()
    stamp = time.strftime("%H:%M:%S", time.localtime(now))
    print(f"[{stamp}.{int(now % 1 * 1000):03d} {_origin(1)}] {msg}",
          file=sys.stderr, flush=True)
