"""Drive file handlers for CLI"""

import asyncio
import logging
from pathlib import Path
from typing import List

from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.prompt import Confirm
from rich.table import Table

from cli.status_display import format_size
from stash import CloudStash

logger = logging.getLogger(__name__)


def _progress(console) -> Progress:
    return Progress(
        TextColumn("[bold]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    )


def list_files(stash: CloudStash, console) -> bool:
    """Show the most recent files as a table"""
    files = asyncio.run(stash.list_files())

    if not files:
        console.print("[dim]No files yet[/dim]")
        return True

    table = Table(title="Google Drive Files")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Created")

    for item in files:
        table.add_row(
            item.id,
            item.name,
            format_size(item.size_bytes),
            item.created_at.astimezone().strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)
    return True


def upload_files(stash: CloudStash, paths: List[str], console) -> bool:
    """
    Upload files concurrently and print their share links

    Returns:
        True if every upload succeeded
    """
    files = [Path(p).expanduser() for p in paths]
    missing = [str(p) for p in files if not p.is_file()]
    if missing:
        console.print(f"[red]Not a file:[/red] {', '.join(missing)}")
        return False

    with _progress(console) as progress:
        async def upload_one(path: Path):
            task = progress.add_task(path.name, total=1.0)
            return await stash.upload_file(path, lambda fraction: progress.update(task, completed=fraction))

        async def upload_all():
            return await asyncio.gather(*(upload_one(p) for p in files), return_exceptions=True)

        results = asyncio.run(upload_all())

    ok = True
    for path, result in zip(files, results):
        if isinstance(result, BaseException):
            ok = False
            logger.debug(f"Upload of {path} failed", exc_info=result)
            console.print(f"[red]✗ {path.name}:[/red] {result}")
        else:
            console.print(f"[green]✓ {path.name}[/green] {result.share_url}")
    return ok


def download_file(stash: CloudStash, file_id: str, destination: str, console) -> bool:
    """Download a file with a progress bar"""
    target = Path(destination).expanduser()
    if target.is_dir():
        target = target / file_id

    with _progress(console) as progress:
        task = progress.add_task(target.name, total=1.0)
        saved = asyncio.run(
            stash.download(file_id, target, lambda fraction: progress.update(task, completed=fraction))
        )

    console.print(f"[green]✓ Saved to[/green] {saved}")
    return True


def delete_file(stash: CloudStash, file_id: str, console, assume_yes: bool = False) -> bool:
    """Permanently delete a file after confirmation"""
    if not assume_yes and not Confirm.ask(f"Permanently delete {file_id}?", default=False, console=console):
        return False

    asyncio.run(stash.delete(file_id))
    console.print(f"[green]✓ Deleted[/green] {file_id}")
    return True
