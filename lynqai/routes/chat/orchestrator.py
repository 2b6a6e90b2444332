import logging
from typing import List, Optional

from lynqai.db.conversation_store import ConversationStore
from lynqai.errors import NotFound
from lynqai.models.conversation import (
    ChatMessage,
    Conversation,
    GenerationRequest,
    GenerationResult,
    ImageGenerationRequest,
    ImageMessage,
    Platform,
    Sender,
    TextMessage,
)
from lynqai.settings import config
from lynqai.utils.auth import AuthenticatedUser
from lynqai.utils.generation_client import GenerationClient, TextGenerationParams
from lynqai.utils.post_processing import post_process
from lynqai.utils.prompts import build_text_prompt

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


class ChatOrchestrator:
    """
    Runs one chat turn: ownership check, generation, post-processing, persistence.

    Steps run strictly in order and every failure aborts the turn. Nothing is
    written until generation has succeeded, and the user and assistant
    messages of a turn are always written in the same store call.
    """

    def __init__(
        self,
        generation_client: GenerationClient,
        store: ConversationStore,
        assistant_name: str = "Sam",
        params: TextGenerationParams | None = None,
    ) -> None:
        self.generation_client = generation_client
        self.store = store
        self.assistant_name = assistant_name
        self.params = params or TextGenerationParams()

    def _owned_conversation(self, user: AuthenticatedUser, conversation_id: str) -> Conversation:
        conversation = self.store.get_conversation(conversation_id)
        if conversation.user_id != user.uid:
            logger.warning(f"User {user.uid} tried to access conversation {conversation_id}")
            raise NotFound(f"Conversation {conversation_id} not found")
        return conversation

    def _persist_turn(
        self,
        user: AuthenticatedUser,
        platform: Platform,
        conversation_id: Optional[str],
        pair: List[ChatMessage],
    ) -> str:
        if conversation_id:
            self.store.append_messages(conversation_id, pair)
            return conversation_id
        return self.store.create_conversation(user.uid, platform, pair)

    def text_turn(self, user: AuthenticatedUser, request: GenerationRequest) -> GenerationResult:
        if request.conversation_id:
            self._owned_conversation(user, request.conversation_id)

        prompt = build_text_prompt(
            request.platform,
            request.user_message,
            request.word_count,
            self.assistant_name,
            system_message=request.system_message,
        )
        raw = self.generation_client.generate_text(prompt, self.params)
        processed = post_process(raw, request.word_count, speaker=self.assistant_name)
        logger.info(
            f"Generated {len(processed.text.split())}/{request.word_count} words "
            f"for {request.platform.value}"
        )

        conversation_id = self._persist_turn(
            user,
            request.platform,
            request.conversation_id,
            [
                TextMessage(sender=Sender.USER, text=request.user_message),
                TextMessage(sender=Sender.ASSISTANT, text=processed.text),
            ],
        )
        return GenerationResult(
            conversation_id=conversation_id,
            text=processed.text,
            is_complete=processed.is_complete,
        )

    def image_turn(
        self, user: AuthenticatedUser, request: ImageGenerationRequest
    ) -> GenerationResult:
        if request.conversation_id:
            self._owned_conversation(user, request.conversation_id)

        image = self.generation_client.generate_image(request.prompt, request.platform)
        image_url = image.to_data_uri()
        logger.info(f"Generated {len(image.data)} byte {image.content_type} image")

        conversation_id = self._persist_turn(
            user,
            request.platform,
            request.conversation_id,
            [
                TextMessage(sender=Sender.USER, text=request.prompt),
                ImageMessage(sender=Sender.ASSISTANT, image_url=image_url),
            ],
        )
        return GenerationResult(conversation_id=conversation_id, image_url=image_url)

    def add_message(
        self, user: AuthenticatedUser, conversation_id: str, message: ChatMessage
    ) -> None:
        self._owned_conversation(user, conversation_id)
        self.store.append_messages(conversation_id, [message])

    def get_conversation(self, user: AuthenticatedUser, conversation_id: str) -> Conversation:
        return self._owned_conversation(user, conversation_id)

    def list_conversations(self, user: AuthenticatedUser) -> List[Conversation]:
        return self.store.list_conversations(user.uid)


def build_orchestrator() -> ChatOrchestrator:
    return ChatOrchestrator(
        GenerationClient.from_config(),
        ConversationStore(),
        assistant_name=config.assistant_name,
        params=TextGenerationParams.from_config(),
    )
