"""CLI package for CloudStash

Command-line front end over the CloudStash session: sign-in, listing,
uploads with share links, downloads and deletes.
"""

from cli.main import main

__all__ = [
    "main",
]
