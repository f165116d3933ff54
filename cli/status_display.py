"""Status display functionality for CLI"""

from rich.table import Table

from stash import CloudStash


def show_status(stash: CloudStash, console):
    """
    Display session and token status

    Args:
        stash: CloudStash session
        console: Rich console for output
    """
    status = stash.tokens.get_status()

    table = Table(title="CloudStash Status")
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    table.add_row("Profile", stash.profile.name)
    table.add_row("Auth State", stash.auth_state.value)

    user = stash.current_user
    if user:
        table.add_row("Account", f"{user.name} <{user.email}>" if user.name != user.email else user.email)

    if status["has_tokens"]:
        style = "red" if status["is_expired"] else "green"
        table.add_row("Token Expires At", status["expires_at"])
        table.add_row("Time Until Expiry", f"[{style}]{status['time_until_expiry']}[/{style}]")
    else:
        table.add_row("Signed In", "[red]No[/red]")

    table.add_row("Theme", stash.theme.value)

    console.print(table)


def format_size(size_bytes: int) -> str:
    """Human-readable file size"""
    size = float(size_bytes)
    if size < 1024:
        return f"{size_bytes} B"
    for unit in ("KB", "MB"):
        size /= 1024
        if size < 1024:
            return f"{size:.1f} {unit}"
    return f"{size / 1024:.1f} GB"
