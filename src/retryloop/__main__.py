"""``python -m retryloop -- COMMAND``"""

from retryloop.cli import run

if __name__ == "__main__":
    raise SystemExit(run())
