"""Run the DNC checker with ``python -m dnc_checker``.

``check`` runs a batch of numbers through the lookup APIs, ``export`` writes
one bucket of the saved results and ``relay`` starts the HTTP relay proxy.
Without a sub-command the usage text is printed and the exit code is 2.
"""
from __future__ import annotations

import sys

from . import cli

PROG = "python -m dnc_checker"


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    if args:
        return cli.main(args)

    cli.build_parser(prog=PROG).print_help()
    return 2


if __name__ == "__main__":  # pragma: no cover - module entry point
    sys.exit(main())
