from app.domains.summary.schemas import SummaryRequest, SummaryResponse
from app.domains.summary.services import Summarizer, ExtractiveSummarizer

__all__ = [
    "SummaryRequest", "SummaryResponse",
    "Summarizer", "ExtractiveSummarizer"
]
