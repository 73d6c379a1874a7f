"""trooper: a modal terminal file manager with a register shared across instances.

Importing the package stays cheap; ``main`` pulls in the CLI and runtime only
when called.
"""

from __future__ import annotations

__version__ = "0.1.0"


def main(argv: list[str] | None = None) -> int:
    """Run the ``trooper`` command line and return its exit status."""
    from .cli import main as _main

    return _main(argv)


__all__ = ["__version__", "main"]
