"""``python -m lib_dynamic_config`` runs the inspection CLI."""

from __future__ import annotations

import sys

from .cli import main

if __name__ == "__main__":  # pragma: no cover - exercised via python -m
    # the interpreter exits right after, so the traceback flag need not be restored
    raise SystemExit(main(sys.argv[1:], restore_traceback=False))
