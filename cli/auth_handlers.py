"""Authentication handlers for CLI"""

import asyncio
import logging

from rich.prompt import Confirm

from stash import CloudStash
from utils.errors import AuthError, CloudStashError, CredentialStorageError

logger = logging.getLogger(__name__)


def login(stash: CloudStash, console) -> bool:
    """
    Handle the login flow

    Opens the browser, then waits for the redirect URL to be pasted. When the
    OS delivers the redirect to a registered scheme handler instead, the
    prompt can be abandoned and `cloudstash callback URL` used.

    Args:
        stash: CloudStash session
        console: Rich console for output

    Returns:
        True if sign-in completed
    """
    if stash.is_signed_in:
        user = stash.current_user
        console.print(f"[yellow]Already signed in as {user.email if user else 'unknown'}[/yellow]")
        if not Confirm.ask("Sign in again?", default=False, console=console):
            return True

    console.print("\n[bold]Step 1:[/bold] Opening browser for Google sign-in...")
    auth_url = stash.sign_in()
    console.print("[dim]If the browser did not open, visit this URL:[/dim]")
    console.print(f"[cyan]{auth_url}[/cyan]")

    console.print("\n[bold]Step 2:[/bold] Authorize CloudStash in your browser")
    console.print("\n[bold]Step 3:[/bold] Paste the redirect URL below")
    console.print(f"[dim]It starts with: {stash.profile.redirect_uri}?[/dim]\n")

    try:
        callback_url = input("Callback URL: ")
    except (KeyboardInterrupt, EOFError):
        console.print("\n[yellow]Authentication cancelled by user[/yellow]")
        return False

    return handle_callback(stash, callback_url, console)


def handle_callback(stash: CloudStash, callback_url: str, console) -> bool:
    """
    Complete sign-in from a redirect URL

    Args:
        stash: CloudStash session
        callback_url: Redirect URL from the browser or the OS
        console: Rich console for output

    Returns:
        True if sign-in completed
    """
    console.print("Exchanging authorization code for tokens...")
    try:
        user = asyncio.run(stash.handle_redirect(callback_url.strip()))
    except (AuthError, CredentialStorageError) as e:
        console.print(f"[red]Sign in failed:[/red] {e}")
        return False
    except CloudStashError as e:
        # Tokens are stored; only the profile lookup failed
        console.print(f"[yellow]Signed in, but the profile could not be loaded:[/yellow] {e}")
        return stash.is_signed_in

    console.print(f"[green][OK][/green] You're now connected to Google Drive as {user.email}")
    return True


def logout(stash: CloudStash, console, assume_yes: bool = False) -> bool:
    """
    Sign out and clear stored credentials

    Args:
        stash: CloudStash session
        console: Rich console for output
        assume_yes: Skip the confirmation prompt
    """
    if not stash.is_signed_in:
        console.print("[dim]Not signed in[/dim]")
        return True

    if not assume_yes and not Confirm.ask("Sign out of Google Drive?", default=True, console=console):
        return False

    stash.sign_out()
    console.print("[green]Signed out[/green]")
    return True
