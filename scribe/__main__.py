"""Entry point for the Scribe CLI.

Allows running the generator with ``python -m scribe``.
"""

from .cli import main

if __name__ == "__main__":  # pragma: no cover
    main()
