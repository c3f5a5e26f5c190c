"""API router exposing document upload, grounded Q&A and conversation history."""
from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel, ConfigDict, Field
from starlette.concurrency import run_in_threadpool

from quizrag.errors import ExtractionFailed, InvalidArgument, PersistenceFailed, RetrievalFailed
from quizrag.history import Conversation
from quizrag.services import ChatService, get_chat_service
from quizrag.vectorstore import VectorStoreUnavailableError

router = APIRouter(prefix="/api/chat", tags=["chat"])

MAX_UPLOAD_BYTES = 10 * 1024 * 1024


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class UploadResponse(_CamelModel):
    """Response body returned from the upload endpoint."""

    success: bool = True
    chunks: int
    failed: int
    total_chunks: int = Field(..., alias="totalChunks")
    namespace: str
    filename: str
    file_id: str = Field(..., alias="fileId")
    url: str | None = None
    message: str


class QueryRequest(BaseModel):
    """Request body accepted by the query endpoint."""

    query: str = Field("", description="Question to ask about the selected document.")
    namespace: str = Field("", description="Namespace of the uploaded document.")


class QueryResponse(BaseModel):
    """Response payload for the query endpoint."""

    success: bool = True
    query: str
    namespace: str
    answer: str
    confidence: str
    sources: list[str]


class NamespaceItem(_CamelModel):
    name: str
    display_name: str = Field(..., alias="displayName")
    vector_count: int = Field(..., alias="vectorCount")


class NamespacesResponse(BaseModel):
    success: bool = True
    namespaces: list[NamespaceItem]


class ConversationRequest(_CamelModel):
    namespace: str = Field(..., min_length=1)
    filename: str = Field(..., min_length=1)
    title: str | None = None
    file_url: str | None = Field(None, alias="fileUrl")


class ConversationResponse(BaseModel):
    success: bool = True
    conversation: Conversation


class ConversationsResponse(BaseModel):
    success: bool = True
    conversations: list[Conversation]


class DeleteResponse(BaseModel):
    success: bool = True


class PdfUrlResponse(BaseModel):
    success: bool = True
    url: str


@router.post("/upload", response_model=UploadResponse)
async def upload_document(
    pdf: UploadFile = File(...),
    chat_service: ChatService = Depends(get_chat_service),
) -> UploadResponse:
    """Index an uploaded document under a new namespace."""

    data = await pdf.read()
    if not data:
        raise HTTPException(status_code=400, detail="No file uploaded")
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File exceeds the 10 MB upload limit")

    try:
        result = await run_in_threadpool(chat_service.upload, data, pdf.filename or "upload.pdf")
    except InvalidArgument as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ExtractionFailed as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except VectorStoreUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    return UploadResponse(
        chunks=result.chunks,
        failed=result.failed,
        total_chunks=result.total_chunks,
        namespace=result.namespace,
        filename=result.filename,
        file_id=result.file_id,
        url=result.url,
        message=f"Successfully uploaded {result.chunks} out of {result.total_chunks} chunks",
    )


@router.post("/query", response_model=QueryResponse)
async def query_document(
    request: QueryRequest,
    chat_service: ChatService = Depends(get_chat_service),
) -> QueryResponse:
    """Answer a question grounded in the selected document."""

    try:
        result = await run_in_threadpool(chat_service.ask, request.query, request.namespace)
    except InvalidArgument as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except RetrievalFailed as exc:
        if isinstance(exc.__cause__, VectorStoreUnavailableError):
            raise HTTPException(status_code=503, detail=str(exc.__cause__)) from exc
        raise HTTPException(status_code=502, detail="Search failed. Please try again.") from exc

    return QueryResponse(
        query=request.query,
        namespace=request.namespace,
        answer=result.answer,
        confidence=result.confidence,
        sources=result.sources,
    )


@router.get("/namespaces", response_model=NamespacesResponse)
def list_namespaces(chat_service: ChatService = Depends(get_chat_service)) -> NamespacesResponse:
    """List the indexed documents and their record counts."""

    try:
        namespaces = chat_service.list_namespaces()
    except VectorStoreUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return NamespacesResponse(
        namespaces=[
            NamespaceItem(name=item.name, display_name=item.display_name, vector_count=item.vector_count)
            for item in namespaces
        ]
    )


@router.get("/conversations", response_model=ConversationsResponse)
def list_conversations(chat_service: ChatService = Depends(get_chat_service)) -> ConversationsResponse:
    return ConversationsResponse(conversations=chat_service.history.list())


@router.get("/conversations/{namespace}", response_model=ConversationResponse)
def get_conversation(
    namespace: str,
    chat_service: ChatService = Depends(get_chat_service),
) -> ConversationResponse:
    conversation = chat_service.history.find_by_namespace(namespace)
    if conversation is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return ConversationResponse(conversation=conversation)


@router.post("/conversations", response_model=ConversationResponse)
def create_conversation(
    request: ConversationRequest,
    chat_service: ChatService = Depends(get_chat_service),
) -> ConversationResponse:
    try:
        conversation = chat_service.history.create(
            namespace=request.namespace,
            filename=request.filename,
            title=request.title,
            file_url=request.file_url,
        )
    except PersistenceFailed as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return ConversationResponse(conversation=conversation)


@router.delete("/conversations/{conversation_id}", response_model=DeleteResponse)
def delete_conversation(
    conversation_id: str,
    chat_service: ChatService = Depends(get_chat_service),
) -> DeleteResponse:
    try:
        deleted = chat_service.history.delete(conversation_id)
    except PersistenceFailed as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    if not deleted:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return DeleteResponse()


@router.get("/pdf/{namespace}", response_model=PdfUrlResponse)
def get_pdf_url(namespace: str, chat_service: ChatService = Depends(get_chat_service)) -> PdfUrlResponse:
    """Return the URL the uploaded document for *namespace* is served at."""

    url = chat_service.pdf_url(namespace)
    if url is None:
        raise HTTPException(status_code=404, detail="PDF not found for this namespace")
    return PdfUrlResponse(url=url)
