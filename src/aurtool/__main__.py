"""Entry point for running aurtool as a module."""

import sys


def main():
    """Main entry point for ``python -m aurtool``."""
    from aurtool.cli import main as cli_main

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
