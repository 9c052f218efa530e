"""
Package entry point.

Allows running the application via:

    python -m mysemester

This simply forwards execution to mysemester.cli.main().
"""

from mysemester.cli import main

if __name__ == "__main__":
    main()
