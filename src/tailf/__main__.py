"""CLI entry point for tailf."""

import sys


def main() -> int:
    """Main entry point for the tailf CLI."""
    from tailf.cli import run_cli

    return run_cli(sys.argv[1:])


if __name__ == "__main__":
    sys.exit(main())
