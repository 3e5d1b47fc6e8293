"""Rich spinner display for the analysis and strategy steps."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

console = Console()


class PipelineProgress:
    """One spinner row per pipeline step (page fetch, analysis, strategy)."""

    def __init__(self, *, console: Console = console) -> None:
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            TimeElapsedColumn(),
            console=console,
            transient=False,
        )
        self._steps: dict[str, int] = {}

    def __enter__(self) -> "PipelineProgress":
        self._progress.start()
        return self

    def __exit__(self, *args: object) -> None:
        self._progress.stop()

    def _set(self, step: str, description: str, *, done: bool = False) -> None:
        task_id = self._steps.get(step)
        if task_id is None:
            return
        if done:
            self._progress.update(task_id, description=description, total=1, completed=1)
        else:
            self._progress.update(task_id, description=description)

    def start_step(self, step: str) -> None:
        self._steps[step] = self._progress.add_task(f"[cyan]{step}[/]", total=None)

    def update_step(self, step: str, status: str) -> None:
        """Show live status, e.g. the number of streamed characters."""
        self._set(step, f"[cyan]{step}[/] [dim]{status}[/]")

    def finish_step(self, step: str, note: str = "") -> None:
        suffix = f" [dim]({note})[/]" if note else ""
        self._set(step, f"[green]✓ {step}[/]{suffix}", done=True)

    def fail_step(self, step: str, error: str) -> None:
        self._set(step, f"[red]✗ {step}: {error}[/]", done=True)

    def print_phase(self, label: str) -> None:
        self._progress.console.print(Panel(f"[bold]{label}[/bold]", style="blue"))
