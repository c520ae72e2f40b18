"""Module entrypoint for ``python -m filemarks``.

All argument parsing and dispatch happen in ``filemarks.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
