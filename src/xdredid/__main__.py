"""Executable entry point for ``python -m xdredid``."""

from __future__ import annotations

from xdredid.app import main

if __name__ == "__main__":  # pragma: no cover - script entry
    raise SystemExit(main())
