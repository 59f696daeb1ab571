from pydantic import BaseModel, Field


class SummaryRequest(BaseModel):
    """Схема запроса на сокращение текста"""
    content: str = Field(..., min_length=1, max_length=1000000)


class SummaryResponse(BaseModel):
    """Схема ответа с сокращенным текстом"""
    summary: str
