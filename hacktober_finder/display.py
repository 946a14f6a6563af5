"""Rich terminal rendering of explorer view-models."""

from rich import box
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .config import BODY_PREVIEW_CHARS
from .views import (
    ErrorView,
    Frame,
    IssueDetailView,
    IssueListView,
    LoadingView,
    RepoListView,
    WelcomeView,
    truncate,
)


def difficulty_color(score: int) -> str:
    if score <= 30:
        return "green"
    if score <= 60:
        return "yellow"
    if score <= 80:
        return "red"
    return "magenta"


def header(title: str) -> Panel:
    return Panel(Text(title, style="bold cyan"), box=box.DOUBLE, expand=False)


def footer(*controls: str) -> Text:
    return Text(" • ".join(controls), style="dim")


def render_welcome(view: WelcomeView) -> RenderableType:
    config = Table(show_header=False, box=box.SIMPLE, padding=(0, 2))
    config.add_column("Key", style="bold", width=18)
    config.add_column("Value")
    config.add_row("Languages", Text(", ".join(view.languages) or "any"))
    config.add_row("Skill Level", Text(view.skill_level))
    config.add_row("Max Repositories", str(view.max_repos))

    return Group(
        header("Hacktoberfest Repository & Issue Explorer"),
        Text(),
        Text("Welcome!", style="bold underline"),
        Text("This tool helps you find relevant Hacktoberfest repositories and issues"),
        Text("tailored to your skills and interests."),
        Text(),
        Text("Your Configuration", style="bold underline"),
        config,
        Text("Press ENTER to start searching for repositories!", style="bold green"),
        Text(),
        footer("Enter: Start", "Q: Quit"),
    )


def render_loading(view: LoadingView) -> RenderableType:
    return Group(
        header(view.title),
        Text(),
        Text(view.message, style="yellow"),
        Text(),
        footer("Esc: Cancel", "Ctrl+C: Quit"),
    )


def render_error(view: ErrorView, log_path: str | None) -> RenderableType:
    parts: list[RenderableType] = [
        header(view.title),
        Text(),
        Text(view.message, style="bold red"),
    ]
    if log_path:
        parts += [Text(), Text("Check logs for details:", style="yellow"), Text(log_path, style="dim")]
    parts += [Text(), footer(*view.actions)]
    return Group(*parts)


def filter_line(view: RepoListView | IssueListView) -> Text:
    matches = view.hidden_above + len(view.items) + view.hidden_below
    line = Text.assemble(("Filter: ", "bold yellow"), view.filter_text)
    if view.filtering:
        line.append("_", style="bold")
    line.append(f"  ({matches} matching)", style="dim")
    return line


def list_controls(view: RepoListView | IssueListView, *controls: str) -> Text:
    if view.filtering:
        return footer("Type to filter", "Enter: Apply", "Esc: Clear")
    return footer(*controls, "Esc: Clear filter" if view.filter_text else "/: Filter")


def windowed(view: RepoListView | IssueListView, table: Table) -> list[RenderableType]:
    """The table between markers for the rows scrolled out of view."""
    parts: list[RenderableType] = []
    if view.hidden_above:
        parts.append(Text(f"↑ {view.hidden_above} more", style="dim"))
    parts.append(table)
    if view.hidden_below:
        parts.append(Text(f"↓ {view.hidden_below} more", style="dim"))
    return parts


def render_repo_list(view: RepoListView) -> RenderableType:
    title = f"Hacktoberfest Repositories (~{view.total_estimate:,} total found)"
    if not view.items and not view.filtered:
        return Group(
            header("No Repositories Found"),
            Text(),
            Text(view.empty_message, style="red"),
            Text(),
            footer("Q: Back", "R: Refresh"),
        )

    parts: list[RenderableType] = [filter_line(view)] if view.filtered else []
    if view.items:
        table = Table(title=title, box=box.ROUNDED, show_lines=True)
        table.add_column("#", width=4, justify="right", no_wrap=True)
        table.add_column("Repository", style="cyan", max_width=40, no_wrap=True, overflow="ellipsis")
        table.add_column("Stars", justify="right", width=8, no_wrap=True)
        table.add_column("Language", width=12, no_wrap=True, overflow="ellipsis")
        table.add_column("Score", justify="right", width=6, no_wrap=True)
        table.add_column("Description", max_width=60, no_wrap=True, overflow="ellipsis")

        for item in view.items:
            marker = "▶" if item.selected else str(item.rank)
            table.add_row(
                marker,
                Text(item.full_name, style="bold reverse" if item.selected else ""),
                f"{item.stars:,}",
                Text(item.language),
                Text(str(item.score), style="green"),
                Text(f"{item.description}\nUpdated: {item.updated}", style="dim"),
            )
        parts += windowed(view, table)
    else:
        parts.append(Text(view.empty_message, style="red"))

    controls = [f"Page {view.page}/{view.total_pages}"]
    if view.has_previous:
        controls.append("← Previous")
    if view.has_next:
        controls.append("Next →")
    controls += ["Enter: Issues", "R: Refresh", "Q: Back"]
    parts.append(list_controls(view, *controls))
    return Group(*parts)


def render_issue_list(view: IssueListView) -> RenderableType:
    if not view.items and not view.filtered:
        return Group(
            header("No Issues Found"),
            Text(),
            Text(view.empty_message, style="red"),
            Text("This repository might not have any open issues.", style="yellow"),
            Text(),
            footer("Q: Back", "R: Refresh"),
        )

    parts: list[RenderableType] = [header(f"Issues in {view.repository}")]
    if view.top_labels:
        parts.append(Text(
            f"Found {view.total} issues with {view.unique_labels} unique labels:", style="yellow",
        ))
        parts.append(Text(
            " • ".join(f"{name} ({count})" for name, count in view.top_labels),
            style="dim", no_wrap=True, overflow="ellipsis",
        ))
        if view.more_labels:
            parts.append(Text(f"... and {view.more_labels} more labels", style="dim"))
    else:
        parts.append(Text(f"Found {view.total} issues", style="yellow"))
    if view.filtered:
        parts.append(filter_line(view))

    if view.items:
        table = Table(box=box.ROUNDED)
        table.add_column("Issue", max_width=60, no_wrap=True, overflow="ellipsis")
        table.add_column("Difficulty", width=10, no_wrap=True)
        table.add_column("Comments", justify="right", width=8, no_wrap=True)
        table.add_column("Created", width=13, no_wrap=True)
        table.add_column("Labels", max_width=40, no_wrap=True, overflow="ellipsis")

        for item in view.items:
            color = difficulty_color(item.difficulty)
            table.add_row(
                Text(f"#{item.number}: {item.title}", style="bold reverse" if item.selected else ""),
                Text(item.difficulty_tag, style=color),
                str(item.comments) if item.comments else "",
                Text(item.created),
                Text(", ".join(item.labels)),
            )
        parts += windowed(view, table)
    else:
        parts.append(Text(view.empty_message, style="red"))
    parts.append(list_controls(view, "Enter: Details", "R: Refresh", "Q: Back"))
    return Group(*parts)


def render_issue_detail(view: IssueDetailView) -> RenderableType:
    info = Table(show_header=False, box=box.SIMPLE, padding=(0, 2))
    info.add_column("Key", style="bold", width=12)
    info.add_column("Value")
    info.add_row("Author", Text(view.author))
    info.add_row("Created", Text(view.created))
    info.add_row("Comments", str(view.comments))
    info.add_row(
        "Difficulty",
        Text(f"{view.difficulty_tag} ({view.difficulty}/100)", style=f"bold {difficulty_color(view.difficulty)}"),
    )
    if view.labels:
        info.add_row("Labels", Text(", ".join(view.labels)))
    info.add_row("URL", Text(view.url))

    parts: list[RenderableType] = [
        header(f"Issue #{view.number}: {view.repository}"),
        Text(view.title, style="bold"),
        info,
    ]
    if view.body:
        parts.append(Panel(Text(truncate(view.body, BODY_PREVIEW_CHARS)), title="Description", box=box.ROUNDED))
    parts.append(footer("Q: Back"))
    return Group(*parts)


def render(frame: Frame) -> RenderableType:
    view = frame.view
    if isinstance(view, LoadingView):
        return render_loading(view)
    if isinstance(view, ErrorView):
        return render_error(view, frame.log_path)
    if isinstance(view, RepoListView):
        return render_repo_list(view)
    if isinstance(view, IssueListView):
        return render_issue_list(view)
    if isinstance(view, IssueDetailView):
        return render_issue_detail(view)
    return render_welcome(view)
