"""
Entry point for `python -m gssh` and for frozen builds (PyInstaller).

PyInstaller executes the entry script as a top-level module, so relative
imports like `from .cli import main` fail there; use the absolute import.
"""

from gssh.cli import main

if __name__ == "__main__":
    main()
