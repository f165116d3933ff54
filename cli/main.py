"""CLI entry point and argument parsing"""

import argparse
import sys

from rich.console import Console

from cli.auth_handlers import handle_callback, login, logout
from cli.debug_setup import setup_logging
from cli.file_handlers import delete_file, download_file, list_files, upload_files
from cli.status_display import show_status
from stash import CloudStash
from utils.errors import CloudStashError, SessionExpiredError
from utils.storage import AppTheme


console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cloudstash",
        description="Upload files to Google Drive and get shareable links",
    )
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")
    parser.add_argument("--profile", "-p", default=None, help="App profile (default: from config)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("login", help="Sign in with Google")

    callback = subparsers.add_parser("callback", help="Complete sign-in from a redirect URL")
    callback.add_argument("url", help="OAuth redirect URL delivered by the browser")

    logout_parser = subparsers.add_parser("logout", help="Sign out and clear stored credentials")
    logout_parser.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")

    subparsers.add_parser("status", help="Show session status")
    subparsers.add_parser("list", help="List recent files")

    upload = subparsers.add_parser("upload", help="Upload files and print share links")
    upload.add_argument("paths", nargs="+", help="Files to upload")

    download = subparsers.add_parser("download", help="Download a file")
    download.add_argument("file_id", help="Drive file ID")
    download.add_argument("destination", help="Destination file or directory")

    delete = subparsers.add_parser("delete", help="Permanently delete a file")
    delete.add_argument("file_id", help="Drive file ID")
    delete.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")

    theme = subparsers.add_parser("theme", help="Show or set the app theme")
    theme.add_argument("value", nargs="?", choices=[t.value for t in AppTheme], help="New theme")

    return parser


def run_command(stash: CloudStash, args) -> bool:
    """Dispatch one parsed command

    Returns:
        True on success
    """
    if args.command == "login":
        return login(stash, console)
    if args.command == "callback":
        return handle_callback(stash, args.url, console)
    if args.command == "logout":
        return logout(stash, console, assume_yes=args.yes)
    if args.command == "status":
        show_status(stash, console)
        return True
    if args.command == "list":
        return list_files(stash, console)
    if args.command == "upload":
        return upload_files(stash, args.paths, console)
    if args.command == "download":
        return download_file(stash, args.file_id, args.destination, console)
    if args.command == "delete":
        return delete_file(stash, args.file_id, console, assume_yes=args.yes)
    if args.command == "theme":
        if args.value:
            stash.theme = args.value
        console.print(f"Theme: [cyan]{stash.theme.value}[/cyan]")
        return True
    raise ValueError(f"Unknown command: {args.command}")


def main(argv=None):
    """Entry point for the CLI"""
    args = build_parser().parse_args(argv)
    setup_logging(debug=args.debug)

    try:
        stash = CloudStash.from_profile(args.profile)
        ok = run_command(stash, args)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except SessionExpiredError as e:
        console.print(f"[red]{e}[/red] Run [bold]cloudstash login[/bold].")
        sys.exit(1)
    except (CloudStashError, ValueError, OSError) as e:
        console.print(f"[red]ERROR:[/red] {e}")
        if args.debug:
            console.print_exception()
        sys.exit(1)

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
