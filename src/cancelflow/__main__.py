"""Allow running as python -m cancelflow."""

from cancelflow.cli.main import app

if __name__ == "__main__":
    app()
