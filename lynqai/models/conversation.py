import enum
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Platform(str, enum.Enum):
    LINKEDIN = "LinkedIn"
    TWITTER = "Twitter"
    FACEBOOK = "Facebook"
    INSTAGRAM = "Instagram"


class Sender(str, enum.Enum):
    USER = "user"
    ASSISTANT = "assistant"


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class TextMessage(_Record):
    """A message carrying generated or typed text."""
    kind: Literal["text"] = "text"
    sender: Sender
    text: str
    message_id: Optional[str] = None
    timestamp: Optional[datetime] = None


class ImageMessage(_Record):
    """A message carrying an image reference, usually a data URI."""
    kind: Literal["image"] = "image"
    sender: Sender
    image_url: str = Field(..., alias="imageURL")
    message_id: Optional[str] = None
    timestamp: Optional[datetime] = None


ChatMessage = Annotated[Union[TextMessage, ImageMessage], Field(discriminator="kind")]


class Conversation(_Record):
    id: str
    user_id: str
    platform: Platform
    messages: List[ChatMessage] = Field(default_factory=list)
    created_at: datetime
    last_updated: datetime


class GenerationRequest(_Record):
    platform: Platform
    user_message: str
    system_message: Optional[str] = None
    word_count: int = 50
    conversation_id: Optional[str] = None


class ImageGenerationRequest(_Record):
    platform: Platform
    prompt: str
    conversation_id: Optional[str] = None


class GenerationResult(_Record):
    conversation_id: str
    text: Optional[str] = None
    image_url: Optional[str] = None
    is_complete: bool = True
