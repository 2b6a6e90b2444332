from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List

from lynqai.models.conversation import (
    ChatMessage,
    Conversation,
    ImageMessage,
    Platform,
    Sender,
    TextMessage,
)
from lynqai.settings import config


class TextGenerationRequest(BaseModel):
    """Request model for a text turn"""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "userMessage": "Announce our new remote-first hiring policy",
                "platform": "LinkedIn",
                "conversationId": None,
                "wordCount": 50,
            }
        },
    )

    system_message: Optional[str] = Field(None, alias="systemMessage", description="Overrides the platform instruction template")
    user_message: str = Field(..., alias="userMessage", min_length=1, max_length=10000, description="The user's request")
    platform: Platform = Field(..., description="Target social network")
    conversation_id: Optional[str] = Field(None, alias="conversationId", description="Optional conversation ID to continue")
    word_count: int = Field(config.default_word_count, alias="wordCount", ge=1, le=1000, description="Target length in words")


class TextGenerationResponse(BaseModel):
    """Response model for a text turn"""
    model_config = ConfigDict(populate_by_name=True)

    generated_text: str = Field(..., description="Post-processed assistant reply")
    conversation_id: str = Field(..., alias="conversationId")
    is_complete: bool = Field(..., alias="isComplete", description="Whether the reply reached the requested word count")


class ImageGenerationRequestBody(BaseModel):
    """Request model for an image turn"""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "prompt": "A sunrise over a city skyline, flat illustration",
                "platform": "Instagram",
                "conversationId": "a542db3f-0e80-4d34-8574-982966e038c6",
            }
        },
    )

    prompt: str = Field(..., min_length=1, max_length=2000)
    platform: Platform
    conversation_id: Optional[str] = Field(None, alias="conversationId")


class ImageGenerationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    generated_image: str = Field(..., description="Image as a data URI")
    conversation_id: str = Field(..., alias="conversationId")


class IncomingMessage(BaseModel):
    """A message posted by the client; exactly one of text or imageURL."""
    model_config = ConfigDict(populate_by_name=True)

    sender: Sender
    text: Optional[str] = None
    image_url: Optional[str] = Field(None, alias="imageURL")

    @model_validator(mode="after")
    def exactly_one_body(self):
        if bool(self.text) == bool(self.image_url):
            raise ValueError("message must carry exactly one of 'text' or 'imageURL'")
        return self

    def to_message(self) -> ChatMessage:
        if self.image_url:
            return ImageMessage(sender=self.sender, image_url=self.image_url)
        return TextMessage(sender=self.sender, text=self.text)


class AddMessageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str = Field(..., alias="conversationId", min_length=1)
    message: IncomingMessage


class AddMessageResponse(BaseModel):
    success: bool
    message: str


class ConversationListResponse(BaseModel):
    conversations: List[Conversation]


class ErrorResponse(BaseModel):
    """Error response model"""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "Failed to generate text.",
                "details": "Inference endpoint returned an error (status 503): Model is loading",
            }
        }
    )

    error: str = Field(..., description="Error message")
    details: Optional[str] = Field(None, description="Additional error details")
