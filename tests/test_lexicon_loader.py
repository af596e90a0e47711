from pathlib import Path

import pytest

from news_analyzer.dedupe import DEFAULT_LEXICON
from news_analyzer.lexicon_loader import load_lexicon


def test_load_lexicon_reads_yaml(tmp_path) -> None:
    path = tmp_path / "lexicon.yaml"
    path.write_text("progress_keywords:\n  - 续集\n  - ' 扩产 '\ncompanies:\n  - 宁德时代\n", encoding="utf-8")
    lexicon = load_lexicon(path)
    assert lexicon.progress_keywords == ("续集", "扩产")
    assert lexicon.companies == ("宁德时代",)


def test_load_lexicon_missing_key_keeps_default(tmp_path) -> None:
    path = tmp_path / "lexicon.yaml"
    path.write_text("companies:\n  - 蔚来\n", encoding="utf-8")
    lexicon = load_lexicon(path)
    assert lexicon.progress_keywords == DEFAULT_LEXICON.progress_keywords
    assert lexicon.companies == ("蔚来",)


def test_load_lexicon_missing_file_returns_default(tmp_path) -> None:
    assert load_lexicon(tmp_path / "absent.yaml") is DEFAULT_LEXICON


def test_load_lexicon_rejects_non_mapping(tmp_path) -> None:
    path = tmp_path / "lexicon.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_lexicon(path)


def test_shipped_lexicon_matches_builtin_lists() -> None:
    path = Path(__file__).resolve().parents[1] / "config" / "dedupe_lexicon.yaml"
    lexicon = load_lexicon(path)
    assert set(lexicon.progress_keywords) == set(DEFAULT_LEXICON.progress_keywords)
    assert set(lexicon.companies) == set(DEFAULT_LEXICON.companies)


def test_load_lexicon_reports_malformed_yaml_as_value_error(tmp_path) -> None:
    path = tmp_path / "lexicon.yaml"
    path.write_text("progress_keywords: [续集\ncompanies: {\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Invalid lexicon file"):
        load_lexicon(path)
