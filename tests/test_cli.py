from typer.testing import CliRunner

from news_analyzer.cli import app
from news_analyzer.models import CanonicalItem
from news_analyzer.storage import NewsHistoryStorage

runner = CliRunner()


def _env(tmp_path, **extra) -> dict:
    env = {
        "DATA_DIR": str(tmp_path / "data"),
        "DB_PATH": str(tmp_path / "data" / "news.db"),
        "LEXICON_PATH": str(tmp_path / "missing_lexicon.yaml"),
        "ANALYSIS_PROVIDER": "openai",
        "OPENAI_API_KEY": "",
        "DEEPSEEK_API_KEY": "",
    }
    env.update(extra)
    return env


def _seed_history(tmp_path) -> None:
    (tmp_path / "data").mkdir(exist_ok=True)
    storage = NewsHistoryStorage(tmp_path / "data" / "news.db")
    storage.insert_analyzed_news(
        CanonicalItem(title="华为发布新款芯片", summary="摘要A", industry_tags=["科技"], type_tags=["产品发布"]),
        article_id="a1",
    )


def test_parse_command_prints_recovered_payload(tmp_path) -> None:
    reply = tmp_path / "reply.txt"
    reply.write_text(
        '模型输出如下：{"has_news": true, "news_list": [{"title": "标题", "summary": "摘要",}],}', encoding="utf-8"
    )

    result = runner.invoke(app, ["--log-level", "WARNING", "parse", str(reply), "--show-tier"])

    assert result.exit_code == 0
    assert '"title": "标题"' in result.output
    assert '"tier": "lenient"' in result.output


def test_parse_command_missing_file_exits_with_error(tmp_path) -> None:
    result = runner.invoke(app, ["--log-level", "WARNING", "parse", str(tmp_path / "absent.txt")])
    assert result.exit_code == 1
    assert "File not found" in result.output


def test_check_duplicate_reports_exact_match(tmp_path) -> None:
    _seed_history(tmp_path)
    args = [
        "--log-level",
        "WARNING",
        "check-duplicate",
        "--title",
        "华为发布新款芯片",
        "--summary",
        "摘要A",
        "--industry-type",
        "科技",
        "--news-type",
        "产品发布",
    ]

    result = runner.invoke(app, args, env=_env(tmp_path))

    assert result.exit_code == 0
    assert "duplicate=True reason=exact matched=华为发布新款芯片 window=1" in result.output


def test_check_duplicate_malformed_lexicon_exits_with_error(tmp_path) -> None:
    lexicon = tmp_path / "lexicon.yaml"
    lexicon.write_text("companies: [腾讯\n", encoding="utf-8")
    args = ["--log-level", "WARNING", "check-duplicate", "--title", "t", "--summary", "s"]

    result = runner.invoke(app, args, env=_env(tmp_path, LEXICON_PATH=str(lexicon)))

    assert result.exit_code == 1
    assert "Error: Invalid lexicon file" in result.output


def test_history_lists_recent_news(tmp_path) -> None:
    _seed_history(tmp_path)

    result = runner.invoke(app, ["--log-level", "WARNING", "history"], env=_env(tmp_path))

    assert result.exit_code == 0
    assert "| 科技 | 产品发布 | 华为发布新款芯片" in result.output
    assert "1 news in the last 15 days" in result.output


def test_analyze_without_api_key_exits_with_error(tmp_path) -> None:
    article = tmp_path / "article.txt"
    article.write_text("华为今天发布了新款芯片。", encoding="utf-8")

    result = runner.invoke(app, ["--log-level", "WARNING", "analyze", str(article), "--no-delay"], env=_env(tmp_path))

    assert result.exit_code == 1
    assert "Error: no API key configured for provider 'openai'" in result.output


def test_analyze_missing_file_exits_with_error(tmp_path) -> None:
    result = runner.invoke(
        app, ["--log-level", "WARNING", "analyze", str(tmp_path / "absent.txt")], env=_env(tmp_path)
    )
    assert result.exit_code == 1
    assert "File not found" in result.output
