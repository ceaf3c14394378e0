"""Module entry point: ``python -m multidisk``."""

from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
