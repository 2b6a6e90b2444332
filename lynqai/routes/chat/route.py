from functools import cache
import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from lynqai.errors import GenerationFailed, NotFound, StorageError
from lynqai.models.conversation import (
    Conversation,
    GenerationRequest,
    ImageGenerationRequest,
)
from lynqai.routes.chat.orchestrator import ChatOrchestrator, build_orchestrator
from lynqai.routes.chat.schemas import (
    AddMessageRequest,
    AddMessageResponse,
    ConversationListResponse,
    ErrorResponse,
    ImageGenerationRequestBody,
    ImageGenerationResponse,
    TextGenerationRequest,
    TextGenerationResponse,
)
from lynqai.utils.auth import AuthenticatedUser, get_current_user

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

router = APIRouter()

ERROR_RESPONSES = {
    401: {"description": "Missing or invalid bearer credential"},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@cache
def get_orchestrator() -> ChatOrchestrator:
    return build_orchestrator()


def error_response(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, details=details).model_dump(),
    )


def conversation_not_found() -> JSONResponse:
    return error_response(status.HTTP_404_NOT_FOUND, "Conversation not found")


# --- ROUTES ---


@router.post(
    "/generate-text",
    response_model=TextGenerationResponse,
    responses=ERROR_RESPONSES,
    summary="Generate a post",
    description="Generate post text for a platform and store the turn",
)
def generate_text(
    request: TextGenerationRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
):
    """
    Run a text turn.

    Args:
        request: TextGenerationRequest with the user's message and target platform

    Returns:
        TextGenerationResponse with the post-processed text and conversation ID
    """
    try:
        result = orchestrator.text_turn(
            user,
            GenerationRequest(
                platform=request.platform,
                user_message=request.user_message,
                system_message=request.system_message,
                word_count=request.word_count,
                conversation_id=request.conversation_id,
            ),
        )
        return TextGenerationResponse(
            generated_text=result.text or "",
            conversation_id=result.conversation_id,
            is_complete=result.is_complete,
        )
    except NotFound:
        return conversation_not_found()
    except (GenerationFailed, StorageError) as e:
        logger.error(f"Error generating text: {e}", exc_info=True)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to generate text.", str(e)
        )


@router.post(
    "/generate-image",
    response_model=ImageGenerationResponse,
    responses=ERROR_RESPONSES,
    summary="Generate an image",
    description="Generate an image for a platform and store the turn",
)
def generate_image(
    request: ImageGenerationRequestBody,
    user: AuthenticatedUser = Depends(get_current_user),
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
):
    try:
        result = orchestrator.image_turn(
            user,
            ImageGenerationRequest(
                platform=request.platform,
                prompt=request.prompt,
                conversation_id=request.conversation_id,
            ),
        )
        return ImageGenerationResponse(
            generated_image=result.image_url or "",
            conversation_id=result.conversation_id,
        )
    except NotFound:
        return conversation_not_found()
    except (GenerationFailed, StorageError) as e:
        logger.error(f"Error generating image: {e}", exc_info=True)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to generate image.", str(e)
        )


@router.post(
    "/add-message",
    response_model=AddMessageResponse,
    responses=ERROR_RESPONSES,
    summary="Append a message",
    description="Append a single message to an existing conversation",
)
def add_message(
    request: AddMessageRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
):
    try:
        orchestrator.add_message(user, request.conversation_id, request.message.to_message())
        return AddMessageResponse(success=True, message="Message added successfully")
    except NotFound:
        return conversation_not_found()
    except StorageError as e:
        logger.error(f"Error adding message: {e}", exc_info=True)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to add message", str(e)
        )


@router.get(
    "/conversations",
    response_model=ConversationListResponse,
    responses=ERROR_RESPONSES,
    summary="List conversations",
    description="The caller's conversations, most recently updated first",
)
def list_conversations(
    user: AuthenticatedUser = Depends(get_current_user),
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
):
    try:
        return ConversationListResponse(conversations=orchestrator.list_conversations(user))
    except StorageError as e:
        logger.error(f"Error listing conversations: {e}", exc_info=True)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to retrieve conversations", str(e)
        )


@router.get(
    "/conversations/{conversation_id}",
    response_model=Conversation,
    responses=ERROR_RESPONSES,
    summary="Get conversation history",
    description="Retrieve all messages in a conversation",
)
def get_conversation(
    conversation_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
):
    try:
        return orchestrator.get_conversation(user, conversation_id)
    except NotFound:
        return conversation_not_found()
    except StorageError as e:
        logger.error(f"Error getting conversation: {e}", exc_info=True)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to retrieve conversation", str(e)
        )
