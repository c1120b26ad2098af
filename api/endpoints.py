# api/endpoints.py
"""
HTTP boundary: request validation and ErrorKind -> status mapping.

Error bodies are always {"error": "<message>"}.
"""
import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.schemas import (
    ChatRequest,
    ChatResponse,
    ClearResponse,
    DocumentRequest,
    DocumentResponse,
    ErrorResponse,
    StatusResponse,
)
from config import settings
from core.enums import ErrorKind
from core.exceptions import RAGError
from core.interfaces import IRAGService
from core.result import Result
from services.factory import get_rag_service

logger = logging.getLogger(settings.LOGGER_NAME)

router = APIRouter(prefix="/api")

UNAVAILABLE_MESSAGE = "Service unavailable. Check if Ollama and the vector store are running."

STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.STORE_UNAVAILABLE: 503,
    ErrorKind.EMBEDDING_FAILURE: 503,
    ErrorKind.GENERATION_FAILURE: 503,
    ErrorKind.NO_RESULT: 500,
}


def status_for(kind: ErrorKind, cause_kind: Optional[ErrorKind] = None) -> int:
    """HTTP status for a failure; ingestion failures take their cause's status."""
    if kind == ErrorKind.INGESTION_FAILURE:
        return STATUS_BY_KIND.get(cause_kind, 500)
    return STATUS_BY_KIND.get(kind, 500)


def error_response(result: Result) -> JSONResponse:
    status_code = status_for(result.error_kind, result.cause_kind)
    message = UNAVAILABLE_MESSAGE if status_code == 503 else result.message
    return JSONResponse(status_code=status_code, content={"error": message})


# ---------- Documents ----------
@router.post(
    "/documents",
    response_model=DocumentResponse,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def ingest_document(
    request: DocumentRequest,
    rag_service: IRAGService = Depends(get_rag_service)
):
    result = await rag_service.ingest(request.content)
    if not result.ok:
        return error_response(result)
    return DocumentResponse(message="Document ingested successfully", chunks_created=result.value)


@router.delete(
    "/documents",
    response_model=ClearResponse,
    responses={503: {"model": ErrorResponse}},
)
async def clear_all_documents(rag_service: IRAGService = Depends(get_rag_service)):
    result = await rag_service.clear_all()
    if not result.ok:
        return error_response(result)
    return ClearResponse(message="All documents cleared successfully", chunks_removed=result.value)


# ---------- Chat ----------
@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def chat(
    request: ChatRequest,
    rag_service: IRAGService = Depends(get_rag_service)
):
    result = await rag_service.ask(request.question)
    if not result.ok:
        return error_response(result)
    response = result.value
    return ChatResponse(answer=response.answer, sources=response.sources)


# ---------- Status ----------
@router.get("/status", response_model=StatusResponse)
async def get_status(rag_service: IRAGService = Depends(get_rag_service)) -> StatusResponse:
    status = await rag_service.get_status()
    return StatusResponse(
        chunks_available=status.chunks_available,
        ready_for_queries=status.ready_for_queries,
        vector_store=status.vector_store,
        embedding_model=status.embedding_model,
        llm_model=status.llm_model,
    )


# ---------- Exception handlers ----------
async def handle_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = "Validation failed"
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        text = str(first.get("msg", "invalid value")).removeprefix("Value error, ")
        message = f"{field}: {text}" if field else text
    return JSONResponse(status_code=400, content={"error": message})


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


async def handle_rag_error(request: Request, exc: RAGError) -> JSONResponse:
    logger.error(f"Request failed: {exc}")
    return error_response(Result.failure(exc))


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"error": str(exc)})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, handle_validation)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(RAGError, handle_rag_error)
    app.add_exception_handler(Exception, handle_unexpected)
