# File: drizzlegen/__main__.py
"""
drizzlegen module entry point.

Allows running the generator directly via::

    python -m drizzlegen -i options.json -o ./drizzle
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from drizzlegen.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
