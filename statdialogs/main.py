import sys

from statdialogs.core.application import run as cli_run

__all__ = ["run"]


def run():
    """Console entry point; exits with the status of the CLI run."""
    sys.exit(cli_run())


if __name__ == "__main__":
    run()
