from __future__ import annotations

import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

import typer

from news_analyzer.analysis import LlmConfigurationError
from news_analyzer.config import Settings, get_settings
from news_analyzer.models import Article, CanonicalItem
from news_analyzer.parser import parse_with_diagnostics
from news_analyzer.pipeline import build_detector, run_analysis
from news_analyzer.storage import NewsHistoryStorage
from news_analyzer.tags import split_tags, unique_sorted

app = typer.Typer(help="News Analyzer CLI")


@app.callback()
def main(log_level: Optional[str] = typer.Option(default=None, help="DEBUG/INFO/WARNING")) -> None:
    level = (log_level or Settings().log_level).upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _read_source(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    path = Path(source)
    if not path.exists():
        raise ValueError(f"File not found: {path}")
    return path.read_text(encoding="utf-8")


@app.command("parse")
def parse_command(
    source: str = typer.Argument(..., help="LLM reply file, or - for stdin"),
    show_tier: bool = typer.Option(False, help="Include the winning parse tier and diagnostics"),
) -> None:
    try:
        raw_text = _read_source(source)
    except ValueError as exc:
        typer.echo(f"Error: {exc}")
        raise typer.Exit(code=1)

    result = parse_with_diagnostics(raw_text)
    output = asdict(result.payload)
    if show_tier:
        output["tier"] = result.tier.value
        output["diagnostics"] = result.diagnostics
    typer.echo(json.dumps(output, ensure_ascii=False, indent=2))


@app.command("check-duplicate")
def check_duplicate(
    title: str = typer.Option(..., help="新闻标题"),
    summary: str = typer.Option(..., help="新闻摘要"),
    industry_type: str = typer.Option("其他", help="行业类型，可逗号分隔"),
    news_type: str = typer.Option("其他", help="新闻类型，可逗号分隔"),
) -> None:
    settings = get_settings()
    storage = NewsHistoryStorage(settings.db_path)
    candidate = CanonicalItem(
        title=title.strip(),
        summary=summary.strip(),
        industry_tags=unique_sorted(split_tags(industry_type)),
        type_tags=unique_sorted(split_tags(news_type)),
    )
    history = storage.fetch_recent(settings.duplicate_window_days)
    try:
        detector = build_detector(settings)
    except ValueError as exc:
        typer.echo(f"Error: {exc}")
        raise typer.Exit(code=1)
    verdict = detector.check(candidate, history)
    typer.echo(
        f"duplicate={verdict.is_duplicate} reason={verdict.reason} "
        f"matched={verdict.matched_title or '-'} window={len(history)}"
    )


@app.command("analyze")
def analyze(
    files: List[Path] = typer.Argument(..., help="Article text files"),
    no_delay: bool = typer.Option(False, help="Skip the pause between articles"),
) -> None:
    settings = get_settings()
    if no_delay:
        settings.inter_item_delay_min_sec = 0.0
        settings.inter_item_delay_max_sec = 0.0
    storage = NewsHistoryStorage(settings.db_path)

    articles: List[Article] = []
    for path in files:
        if not path.exists():
            typer.echo(f"Error: File not found: {path}")
            raise typer.Exit(code=1)
        articles.append(Article(article_id=path.stem, url=str(path), content=path.read_text(encoding="utf-8")))

    try:
        stats = run_analysis(settings, storage, articles)
    except (LlmConfigurationError, ValueError) as exc:
        typer.echo(f"Error: {exc}")
        raise typer.Exit(code=1)
    typer.echo(
        f"Done. articles={stats['articles']} succeeded={stats['succeeded']} failed={stats['failed']} "
        f"saved={stats['saved']} duplicates={stats['duplicates']}"
    )


@app.command("history")
def history(days: Optional[int] = typer.Option(default=None, help="Window in days, default from settings")) -> None:
    settings = get_settings()
    storage = NewsHistoryStorage(settings.db_path)
    window = days if days is not None else settings.duplicate_window_days
    records = storage.fetch_recent(window)
    for record in records:
        stamp = record.created_at.isoformat() if record.created_at else "-"
        typer.echo(f"{stamp} | {record.industry_type} | {record.news_type} | {record.title}")
    typer.echo(f"{len(records)} news in the last {window} days")


if __name__ == "__main__":
    app()
