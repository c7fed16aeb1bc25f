"""Main entry point when executing robotevents as a package.

This allows running the package using python -m robotevents.
"""

from robotevents.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
