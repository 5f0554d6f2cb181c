"""Entry point for running agispeak as a module."""

from .cli import app


def main() -> None:
    """Main entry point for the agispeak CLI application."""
    app()


if __name__ == "__main__":
    main()
