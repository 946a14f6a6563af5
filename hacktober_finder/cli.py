from __future__ import annotations

import argparse
from pathlib import Path

from rich.console import Console

from .app import AppContext, ExplorerApp
from .config import ConfigError, Settings, SkillLevel, split_languages, load_settings
from .logs import configure_logging

console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Browse Hacktoberfest repositories and their open issues in the terminal."
    )
    parser.add_argument(
        "--token", default=None,
        help="GitHub token (overrides GITHUB_TOKEN and the config file).",
    )
    parser.add_argument(
        "--config", type=Path, default=None,
        help="Config file path (default: ~/.hacktober-config.json)",
    )
    parser.add_argument(
        "--languages", default=None,
        help="Comma-separated preferred languages, e.g. Go,Python",
    )
    parser.add_argument("--max-repos", type=int, default=None, help="Repositories per page")
    parser.add_argument("--max-issues", type=int, default=None, help="Open issues fetched per repository")
    parser.add_argument("--min-stars", type=int, default=None, help="Minimum repository stars")
    parser.add_argument("--topic", default=None, help="Repository topic to search (default: hacktoberfest)")
    parser.add_argument(
        "--skill-level", choices=[level.value for level in SkillLevel], default=None,
    )
    parser.add_argument(
        "--drop-stale", action="store_true", default=False,
        help="Discard results of fetches that were superseded or cancelled",
    )
    parser.add_argument(
        "--save-config", action="store_true", default=False,
        help="Write the effective settings back to the config file",
    )
    parser.add_argument(
        "--log-dir", type=Path, default=None,
        help="Directory for daily log files (default: ~/.hacktober/logs)",
    )
    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    if args.token:
        settings.github_token = args.token
    if args.languages is not None:
        settings.preferred_languages = split_languages(args.languages)
    if args.max_repos is not None:
        settings.max_repos = args.max_repos
    if args.max_issues is not None:
        settings.max_issues_per_repo = args.max_issues
    if args.min_stars is not None:
        settings.min_stars = args.min_stars
    if args.topic:
        settings.topic = args.topic
    if args.skill_level:
        settings.skill_level = SkillLevel(args.skill_level)
    if args.drop_stale:
        settings.drop_stale_completions = True
    return settings


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    try:
        return _main_inner(argv)
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled.[/yellow]")
        return 130


def _main_inner(argv: list[str] | None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = apply_overrides(load_settings(args.config), args)
        settings.validate()
    except ConfigError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        return 1

    if args.save_config:
        path = settings.save(args.config)
        console.print(f"[green]Settings saved to {path}[/green]")

    log_path = configure_logging(args.log_dir)
    app = ExplorerApp(AppContext.create(settings), console=console, log_path=str(log_path))
    app.run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
