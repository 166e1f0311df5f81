"""Rich rendering of streamed feedback.

FeedbackDisplay keeps only the latest snapshot and the latest status,
since every snapshot fully replaces the previous one, and redraws a
Live panel on each event.
"""

from __future__ import annotations

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from pictospeak.schemas.snapshot import FeedbackEvent, FeedbackStatus, Snapshot
from pictospeak.schemas.teaching import KeyTermTeachingRecord

_STATUS_LABELS: dict[FeedbackStatus, str] = {
    FeedbackStatus.UPLOADING_MEDIA: "Uploading media",
    FeedbackStatus.UNDERSTANDING_CONTENT: "Understanding content",
    FeedbackStatus.WRITING_AI_REFINED_PARAGRAPH: "Writing refined paragraph",
    FeedbackStatus.COMPLETED: "Completed",
}

_PROGRESS_STEPS = [
    FeedbackStatus.UPLOADING_MEDIA,
    FeedbackStatus.UNDERSTANDING_CONTENT,
    FeedbackStatus.WRITING_AI_REFINED_PARAGRAPH,
]


def _literal(value: str) -> Text:
    """Backend text as-is, never parsed as Rich markup."""
    if not value:
        return Text("…", style="dim")
    return Text(value)


def render_progress(current: FeedbackStatus | None) -> Text:
    """One line per processing step: done, active, or pending."""
    text = Text()
    current_order = current.order if current is not None else -1
    for step in _PROGRESS_STEPS:
        label = _STATUS_LABELS[step]
        if step.order < current_order:
            text.append(f"  ● {label}\n", style="bold green")
        elif step.order == current_order and current is not FeedbackStatus.COMPLETED:
            text.append(f"  ◉ {label}\n", style="bold cyan")
        else:
            text.append(f"  ○ {label}\n", style="dim")
    return text


def render_snapshot(snapshot: Snapshot) -> Group:
    """Descriptions, suggestions and key terms for one snapshot."""
    title = "Final feedback" if snapshot.is_final else "Feedback (streaming)"
    descriptions = Table.grid(padding=(0, 1))
    descriptions.add_column(style="bold")
    descriptions.add_column()
    descriptions.add_row("You said", _literal(snapshot.original_text))
    descriptions.add_row("Refined", _literal(snapshot.refined_text))

    renderables: list = [Panel(descriptions, title=title, border_style="cyan")]

    if snapshot.suggestions:
        suggestions = Table(title="Suggestions", show_lines=False, expand=True)
        suggestions.add_column("Original", style="yellow")
        suggestions.add_column("Refinement", style="green")
        suggestions.add_column("Translation")
        suggestions.add_column("Reason", style="dim")
        for s in snapshot.suggestions:
            suggestions.add_row(
                Text(s.term), Text(s.refinement), Text(s.translation), Text(s.reason)
            )
        renderables.append(suggestions)

    if snapshot.key_terms:
        chosen = set(snapshot.chosen_key_terms or [])
        key_terms = Table(title="Key terms", expand=True)
        key_terms.add_column("Term", style="bold")
        key_terms.add_column("Translation")
        key_terms.add_column("Example", style="dim")
        for kt in snapshot.key_terms:
            marker = "★ " if kt.term in chosen and snapshot.chosen_items_generated else ""
            key_terms.add_row(Text(f"{marker}{kt.term}"), Text(kt.translation), Text(kt.example))
        renderables.append(key_terms)

    return Group(*renderables)


def render_teaching(record: KeyTermTeachingRecord) -> Panel:
    body = Table.grid(padding=(0, 1))
    body.add_column(style="bold")
    body.add_column()
    body.add_row("Translation", _literal(record.translation))
    body.add_row("Example", _literal(record.example))
    style = "green" if record.is_final else "cyan"
    return Panel(body, title=Text(record.term), border_style=style)


def snapshot_summary(index: int, snapshot: Snapshot) -> str:
    """Compact single-line description of a snapshot (used by replay)."""
    final = " final" if snapshot.is_final else ""
    return (
        f"#{index}{final} refined={len(snapshot.refined_text)} chars "
        f"suggestions={len(snapshot.suggestions)} key_terms={len(snapshot.key_terms)}"
    )


class FeedbackDisplay:
    """Live terminal view for one feedback stream."""

    def __init__(self, console: Console) -> None:
        self._console = console
        self._status: FeedbackStatus | None = None
        self._snapshot: Snapshot | None = None
        self._live: Live | None = None
        self.snapshots_seen = 0

    @property
    def latest(self) -> Snapshot | None:
        return self._snapshot

    def __enter__(self) -> FeedbackDisplay:
        self._live = Live(
            self._build(),
            console=self._console,
            refresh_per_second=8,
        )
        self._live.__enter__()
        return self

    def __exit__(self, *args: object) -> None:
        if self._live:
            self._live.__exit__(*args)
            self._live = None

    def handle(self, event: FeedbackEvent) -> None:
        if event.kind == "status" and event.status is not None:
            self._status = event.status
        elif event.snapshot is not None:
            self._snapshot = event.snapshot
            self.snapshots_seen += 1
            if event.snapshot.is_final:
                self._status = FeedbackStatus.COMPLETED
        self._refresh()

    def _refresh(self) -> None:
        if self._live:
            self._live.update(self._build())

    def _build(self) -> Group:
        parts: list = [render_progress(self._status)]
        if self._snapshot is not None:
            parts.append(render_snapshot(self._snapshot))
        return Group(*parts)
