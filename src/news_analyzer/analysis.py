from __future__ import annotations

import logging
from typing import Optional

from openai import OpenAI

from news_analyzer.config import Settings
from news_analyzer.models import CanonicalPayload
from news_analyzer.parser import parse

logger = logging.getLogger(__name__)

DEFAULT_PROMPT_TEMPLATE = """你是专业的新闻分析专家。分析以下文章内容，提取符合目标类型的新闻信息。

文章内容：
{content}

目标行业类型：
- 科技：包括人工智能、互联网、软件、硬件、电子、通信等技术相关领域
- 金融：包括银行、保险、证券、投资、支付、区块链等金融相关领域
- 医疗：包括医药、医疗器械、医疗服务、生物技术、健康管理等相关领域
- 教育：包括在线教育、培训、学校、教育科技等相关领域
- 房地产：包括房地产开发、建筑、物业、家居等相关领域
- 零售：包括电商、实体店、消费品、物流等相关领域
- 制造业：包括工业制造、机械、材料、能源等相关领域
- 交通：包括汽车、航空、铁路、物流、智慧交通等相关领域
- 文娱：包括影视、音乐、游戏、体育、旅游等相关领域
- 餐饮：包括食品、饮料、餐饮服务、外卖等相关领域
- 其他：不属于以上分类的其他行业

目标新闻类型：
- 产品发布：新产品、新服务的发布和推出
- 融资投资：公司的融资、投资、并购等资本活动
- 政策法规：政府政策、法律法规的发布和变化
- 市场动态：市场趋势、竞争格局、行业变化等
- 技术突破：技术创新、研发成果、专利等
- 人事变动：高管任命、离职、组织架构调整等
- 财务报告：公司财报、业绩发布、财务数据等
- 合作伙伴：战略合作、业务合作、联盟等
- 行业活动：展会、峰会、奖项、评选等
- 负面新闻：公司危机、产品问题、法律纠纷等
- 其他：不属于以上分类的其他新闻类型

要求：
- 识别所有独立的新闻事件
- 为每条新闻选择最匹配的类型
- 提取准确的标题和详细摘要
- 评估信息可信度

直接返回JSON格式结果，不要包含任何其他文字说明：
{{
  "has_news": true,
  "news_list": [
    {{
      "title": "新闻标题",
      "summary": "200字左右的详细摘要，包含事件背景、关键细节、重要数据、影响范围等",
      "industry_type": "行业类型名称",
      "news_type": "新闻类型名称",
      "confidence": 0.8
    }}
  ],
  "analysis_summary": "分析完成"
}}

注意：
- 只返回JSON，不要添加解释性文字
- 如果没有符合条件的新闻，has_news设为false，news_list为空数组
- 确保JSON格式正确"""


class LlmConfigurationError(RuntimeError):
    pass


class NewsAnalyzer:
    def __init__(self, settings: Settings, prompt_template: str = DEFAULT_PROMPT_TEMPLATE):
        self.provider = settings.analysis_provider.lower()
        self.deepseek_strict_model = bool(getattr(settings, "deepseek_strict_model", True))
        self.temperature = settings.llm_temperature
        self.max_tokens = settings.llm_max_tokens
        self.prompt_template = prompt_template
        self.client = None
        self.model = ""

        if self.provider == "deepseek" and settings.deepseek_api_key:
            self.client = OpenAI(api_key=settings.deepseek_api_key, base_url=settings.deepseek_base_url)
            self.model = settings.deepseek_model
        elif self.provider == "openai" and settings.openai_api_key:
            self.client = OpenAI(api_key=settings.openai_api_key, base_url=settings.openai_base_url)
            self.model = settings.openai_model

    def _model_candidates(self) -> list[str]:
        if self.provider == "deepseek":
            if self.deepseek_strict_model:
                return [self.model] if self.model else ["deepseek-chat"]
            candidates = [self.model, "deepseek-chat", "deepseek-reasoner"]
            unique: list[str] = []
            for model in candidates:
                if model and model not in unique:
                    unique.append(model)
            return unique
        return [self.model] if self.model else []

    def build_prompt(self, content: str) -> str:
        return self.prompt_template.format(content=content)

    def complete(self, prompt: str) -> str:
        if not self.client or not self._model_candidates():
            raise LlmConfigurationError(f"no API key configured for provider '{self.provider}'")

        completion = None
        last_error: Optional[Exception] = None
        for model in self._model_candidates():
            try:
                completion = self.client.chat.completions.create(
                    model=model,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                    messages=[{"role": "user", "content": prompt}],
                )
                break
            except Exception as exc:
                last_error = exc
                if "Model Not Exist" in str(exc):
                    continue
                raise
        if completion is None:
            raise RuntimeError(f"LLM completion failed: {last_error}")

        if not completion.choices:
            return ""
        message = completion.choices[0].message
        content = message.content or ""
        if not content.strip():
            content = getattr(message, "reasoning_content", None) or ""
        logger.debug("LLM reply length %d", len(content))
        return content

    def analyze(self, content: str) -> CanonicalPayload:
        raw = self.complete(self.build_prompt(content))
        payload = parse(raw)
        logger.info(
            "LLM analysis parsed: has_news=%s items=%d summary=%s",
            payload.has_news,
            len(payload.news_list),
            payload.analysis_summary,
        )
        return payload
