"""Module entrypoint for ``python -m vellum``.

All argument parsing and engine setup happen in ``vellum.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
