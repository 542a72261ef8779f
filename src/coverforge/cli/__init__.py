"""coverforge CLI - command line interface for coverforge."""

from coverforge.cli.commands import cli


def main() -> None:
    """Main entry point for the coverforge CLI."""
    cli()


__all__ = ["main", "cli"]
