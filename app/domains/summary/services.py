import logging
import math
import re
from typing import List, Protocol

from app.core.errors import InvalidInput

logger = logging.getLogger(__name__)

SENTENCE_SPLIT = re.compile(r"[.!?]+")
MAX_SENTENCES = 3


class Summarizer(Protocol):
    """Внешний сервис сокращения текста заметки"""

    async def summarize(self, content: str) -> str:
        ...


class ExtractiveSummarizer:
    """Заглушка вместо AI-бэкенда: первые предложения текста

    Берется треть предложений, но не меньше одного и не больше трех.
    К хранилищу доступа нет: результат записывается обратно обычным
    обновлением заметки.
    """

    def __init__(self, max_sentences: int = MAX_SENTENCES):
        self.max_sentences = max_sentences

    def split_sentences(self, content: str) -> List[str]:
        return [s.strip() for s in SENTENCE_SPLIT.split(content) if s.strip()]

    async def summarize(self, content: str) -> str:
        if not content or not content.strip():
            raise InvalidInput("Invalid content. Please provide text to summarize.", {"field": "content"})

        sentences = self.split_sentences(content)
        if not sentences:
            raise InvalidInput("Content has no sentences to summarize", {"field": "content"})

        summary_length = max(1, min(self.max_sentences, math.ceil(len(sentences) / 3)))
        summary = ". ".join(sentences[:summary_length])

        logger.info(f"Summarized {len(sentences)} sentences into {summary_length}")
        return summary if summary.endswith(".") else summary + "."
