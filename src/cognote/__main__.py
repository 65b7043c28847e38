"""cognote CLI entrypoint."""

from cognote.cli import app

if __name__ == "__main__":
    app()
