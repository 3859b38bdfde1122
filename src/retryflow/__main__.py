"""Module entrypoint for `python -m retryflow`."""

from retryflow.cli import run

if __name__ == "__main__":
    raise SystemExit(run())
