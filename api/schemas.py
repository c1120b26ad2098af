# api/schemas.py
from typing import List

from pydantic import BaseModel, Field, field_validator


class DocumentRequest(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Content cannot be blank")
        return value


class ChatRequest(BaseModel):
    question: str

    @field_validator("question")
    @classmethod
    def question_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Question cannot be blank")
        return value


class DocumentResponse(BaseModel):
    message: str
    chunks_created: int = Field(serialization_alias="chunksCreated")


class ClearResponse(BaseModel):
    message: str
    chunks_removed: int = Field(serialization_alias="chunksRemoved")


class ChatResponse(BaseModel):
    answer: str
    sources: List[str]


class StatusResponse(BaseModel):
    chunks_available: int = 0
    ready_for_queries: bool = False
    vector_store: str
    embedding_model: str
    llm_model: str


class ErrorResponse(BaseModel):
    error: str
