"""Allow running as ``python -m stockwatch``."""

from stockwatch.cli.main import cli


if __name__ == "__main__":
    cli()
