"""Entry point for `python -m pathpool`."""

from pathpool.cli import cli

if __name__ == "__main__":

    cli()
