"""Support ``python -m trooper``; exits with the status ``cli.main`` returns."""

from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
