"""Terminal, plain-text and JSON renderings of a LinkListView."""

import json

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..classify import ClassifiedLink
from .view import LinkListView

TAG_STYLES = {
    "twitter": "bright_blue",
    "telegram": "cyan",
    "discord": "magenta",
    "instagram": "bright_magenta",
    "solana": "green",
    "eth": "yellow",
    "docs": "bright_green",
}


def _link_style(item: ClassifiedLink) -> str:
    if item.is_blocked:
        return "red strike"
    if item.is_duplicate:
        return "dim"
    return ""


def _badges(item: ClassifiedLink) -> str:
    return " ".join(
        f"[{TAG_STYLES.get(tag.value, 'white')}]{tag.value}[/]" for tag in sorted(item.tags, key=lambda t: t.value)
    )


def render_table(console: Console, view: LinkListView) -> None:
    """Print the view's sections as rich tables."""
    if view.expired:
        console.print("[yellow]These results have expired.[/yellow] Collect the page again to refresh them.")
        return

    console.print(f"[bold]{escape(view.source)}[/bold]")

    if view.is_empty:
        console.print(f"[dim]No links found on {escape(view.source)}[/dim]")
        return

    shown, total = view.counter
    console.print(f"Copy all: {shown} / {total}")
    console.print()

    for section in view.sections:
        table = Table(title=f"{section.title} ({len(section)})", title_justify="left", expand=False)
        table.add_column("Link", overflow="fold")
        table.add_column("Text", overflow="fold", max_width=40)
        table.add_column("Tags")

        for item in section.links:
            table.add_row(escape(item.href), escape(item.text), _badges(item), style=_link_style(item))

        console.print(table)


def render_text(view: LinkListView) -> str:
    """One href per line, in display order; the "copy all" payload."""
    if view.classification is None:
        return ""
    return "\n".join(item.href for item in view.classification.items)


def render_json(view: LinkListView) -> str:
    if view.expired:
        return json.dumps({"expired": True}, indent=2)

    shown, total = view.counter
    data = {
        "source": view.source,
        "options": view.options.model_dump(),
        "shown": shown,
        "total": total,
        "sections": {section.key: [item.to_dict() for item in section.links] for section in view.sections},
    }
    return json.dumps(data, indent=2)
