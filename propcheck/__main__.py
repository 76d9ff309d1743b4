"""
propcheck/__main__.py
=====================

Entry point for ``python -m propcheck`` and the ``propcheck`` console
script.  See :mod:`propcheck.main` for commands and exit codes.
"""

from __future__ import annotations

from .main import main

if __name__ == "__main__":
    raise SystemExit(main())
