from fastapi import APIRouter, Depends, Request

from app.core.auth import get_current_user_id
from app.domains.summary.schemas import SummaryRequest, SummaryResponse
from app.domains.summary.services import Summarizer

router = APIRouter(tags=["summary"])


def get_summarizer(request: Request) -> Summarizer:
    return request.app.state.summarizer


@router.post(
    "/summarize",
    response_model=SummaryResponse,
    dependencies=[Depends(get_current_user_id)]
)
async def summarize(
    summary_request: SummaryRequest,
    summarizer: Summarizer = Depends(get_summarizer)
):
    """Сокращение текста заметки

    Результат не сохраняется: клиент записывает его обычным
    обновлением заметки.
    """
    summary = await summarizer.summarize(summary_request.content)
    return SummaryResponse(summary=summary)
