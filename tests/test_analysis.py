from types import SimpleNamespace

import pytest

from news_analyzer.analysis import LlmConfigurationError, NewsAnalyzer


def _settings_stub(**overrides) -> SimpleNamespace:
    values = dict(
        analysis_provider="openai",
        openai_api_key=None,
        openai_model="gpt-4o-mini",
        openai_base_url=None,
        deepseek_api_key=None,
        deepseek_model="deepseek-chat",
        deepseek_base_url="https://api.deepseek.com",
        deepseek_strict_model=True,
        llm_temperature=0.3,
        llm_max_tokens=4000,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


class _FakeCompletions:
    def __init__(self, message: SimpleNamespace):
        self.message = message
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(choices=[SimpleNamespace(message=self.message)])


def _analyzer_with_reply(message: SimpleNamespace):
    analyzer = NewsAnalyzer(_settings_stub())
    completions = _FakeCompletions(message)
    analyzer.client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    analyzer.model = "gpt-test"
    return analyzer, completions


def test_analyze_without_api_key_raises_configuration_error() -> None:
    analyzer = NewsAnalyzer(_settings_stub())
    with pytest.raises(LlmConfigurationError):
        analyzer.analyze("文章内容")


def test_analyze_parses_fenced_reply() -> None:
    reply = (
        "```json\n"
        '{"has_news": true, "news_list": [{"title": "苹果发布新手机", "summary": "摘要", '
        '"industry_type": "科技", "news_type": "产品发布", "confidence": 0.9}], "analysis_summary": "完成"}\n'
        "```"
    )
    analyzer, completions = _analyzer_with_reply(SimpleNamespace(content=reply))

    payload = analyzer.analyze("苹果今天发布了新手机")

    assert payload.has_news is True
    assert [item.title for item in payload.news_list] == ["苹果发布新手机"]
    call = completions.calls[0]
    assert call["model"] == "gpt-test"
    assert call["max_tokens"] == 4000
    assert "苹果今天发布了新手机" in call["messages"][0]["content"]


def test_analyze_falls_back_to_reasoning_content() -> None:
    message = SimpleNamespace(
        content="",
        reasoning_content='{"has_news": false, "news_list": [], "analysis_summary": "没有相关新闻"}',
    )
    analyzer, _ = _analyzer_with_reply(message)

    payload = analyzer.analyze("无关内容")

    assert payload.has_news is False
    assert payload.analysis_summary == "没有相关新闻"


def test_deepseek_model_candidates() -> None:
    analyzer = NewsAnalyzer(_settings_stub(analysis_provider="deepseek", deepseek_strict_model=False))
    analyzer.model = "deepseek-reasoner"
    assert analyzer._model_candidates() == ["deepseek-reasoner", "deepseek-chat"]
