"""AI-assisted drafting of proposal text.

The model is asked for a structured ProposalSuggestion. Any failure
(missing API key, timeout, malformed output) degrades to a fixed draft
built from the topic itself; the call is never retried.
"""
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic_ai import Agent

from community_portal.errors import ValidationError
from community_portal.logger import get_logger

logger = get_logger(__name__)

DEFAULT_MODEL = "google-gla:gemini-2.5-flash"
DEFAULT_TIMEOUT_SECONDS = 20.0

FALLBACK_DESCRIPTION = "请针对此事项进行投票表决。"
FALLBACK_OPTIONS = ["同意", "反对", "弃权"]

SYSTEM_PROMPT = """你是住宅小区物业的议事助理，负责把业主关心的事项整理成正式、中立的投票议程。
标题简洁清晰，描述详细但不带倾向性，选项使用中文。"""

PROMPT_TEMPLATE = """请针对住宅小区事务：“{topic}”，创建一个正式且专业的投票议程。
请提供：
1. 一个清晰的中文标题。
2. 一段详细但中立的描述（中文）。
3. 2-4个标准的投票选项（中文，例如：同意、反对、或具体的解决方案）。"""


class ProposalSuggestion(BaseModel):
    """Draft proposal returned by the suggestion model."""

    title: str = Field(min_length=1, description="议题标题（中文）")
    description: str = Field(description="中立的议题描述（中文）")
    options: List[str] = Field(
        min_length=2,
        max_length=4,
        description="2-4 个投票选项，例如：同意、反对、弃权",
    )


def fallback_suggestion(topic: str) -> ProposalSuggestion:
    return ProposalSuggestion(
        title=topic,
        description=FALLBACK_DESCRIPTION,
        options=list(FALLBACK_OPTIONS),
    )


class SuggestionService:
    def __init__(
        self,
        model_name: str = DEFAULT_MODEL,
        *,
        agent: Optional[Agent] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.model_name = model_name
        self.timeout = timeout
        self._agent = agent

    def _get_agent(self) -> Agent:
        # 延迟创建：没有 API key 时在 suggest() 内失败并走兜底
        if self._agent is None:
            self._agent = Agent(
                self.model_name,
                output_type=ProposalSuggestion,
                system_prompt=SYSTEM_PROMPT,
                retries=0,
            )
        return self._agent

    def suggest(self, topic: str) -> ProposalSuggestion:
        topic = (topic or "").strip()
        if not topic:
            raise ValidationError("topic is required")

        try:
            result = self._get_agent().run_sync(
                PROMPT_TEMPLATE.format(topic=topic),
                model_settings={"timeout": self.timeout},
            )
            suggestion = ProposalSuggestion.model_validate(result.output, from_attributes=True)
        except Exception as e:
            logger.warning(f"Suggestion failed for topic {topic!r}, using fallback: {e}")
            return fallback_suggestion(topic)

        logger.info(f"Suggestion generated for topic {topic!r}")
        return suggestion
