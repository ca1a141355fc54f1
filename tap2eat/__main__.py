"""Allow ``python -m tap2eat`` to launch the command line."""

from __future__ import annotations

import sys


def main() -> None:
    from tap2eat import run

    try:
        sys.exit(run(sys.argv[1:]))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
