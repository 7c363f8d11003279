"""Terminal output: status lines, spinners and stack tables."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .deployment.models import StackInfo
from .deployment.status import readable_status

console = Console()
err_console = Console(stderr=True)


def success(message: str) -> None:
    console.print(f'[green]✓ {escape(message)}[/green]', highlight=False)


def error(message: str) -> None:
    err_console.print(f'[red]✗ {escape(message)}[/red]', highlight=False, soft_wrap=True)


def warning(message: str) -> None:
    console.print(f'[yellow]! {escape(message)}[/yellow]', highlight=False)


def info(message: str) -> None:
    console.print(f'[blue]i {escape(message)}[/blue]', highlight=False)


class Spinner:
    """ProgressReporter backed by a rich status spinner."""

    def __init__(self, text: str, *, target: Console | None = None) -> None:
        self._base_text = text
        self._status = (target or console).status(text, spinner='dots', spinner_style='yellow')
        self._running = False

    def start(self) -> Spinner:
        if not self._running:
            self._status.start()
            self._running = True
        return self

    def update(self, text: str) -> None:
        self._status.update(f'{self._base_text}{text}')

    def stop(self) -> None:
        if self._running:
            self._status.stop()
            self._running = False

    def __enter__(self) -> Spinner:
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


def spinner(text: str) -> Spinner:
    return Spinner(text)


def stack_table(stacks: list[StackInfo]) -> Table:
    table = Table('Name', 'Status', 'CreateAt')
    for stack in stacks:
        table.add_row(
            stack.name,
            readable_status(stack.status),
            stack.created_at.strftime('%Y-%m-%d %H:%M:%S'),
        )
    return table
