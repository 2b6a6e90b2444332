from langchain_core.prompts import PromptTemplate

from lynqai.models.conversation import Platform

SYSTEM_TEMPLATE = PromptTemplate.from_template(
    "You are {assistant}, a professional Content Strategist for {platform}. "
    "Provide concise, actionable advice for creating engaging posts. "
    "{guidance} Use a friendly, professional tone. "
    "Limit responses to {word_count} words."
)

USER_TEMPLATE = PromptTemplate.from_template(
    'User\'s request: "{request}"\n\n'
    "Respond as {assistant}, the {platform} Content Strategist. "
    "Provide specific, actionable advice related to the user's input."
)

IMAGE_TEMPLATE = PromptTemplate.from_template("Generate a {platform} image: {prompt}")

PLATFORM_GUIDANCE = {
    Platform.LINKEDIN: "Favour a professional voice and industry insight.",
    Platform.TWITTER: "Posts must fit in 280 characters, so keep ideas punchy.",
    Platform.FACEBOOK: "Aim for conversational posts that invite comments.",
    Platform.INSTAGRAM: "Lead with the visual and suggest a few relevant hashtags.",
}


def build_system_message(platform: Platform, word_count: int, assistant: str) -> str:
    return SYSTEM_TEMPLATE.format(
        assistant=assistant,
        platform=platform.value,
        guidance=PLATFORM_GUIDANCE[platform],
        word_count=word_count,
    )


def build_text_prompt(
    platform: Platform,
    user_message: str,
    word_count: int,
    assistant: str,
    system_message: str | None = None,
) -> str:
    """
    Render the single-string prompt sent to the text model.

    The prompt ends with the assistant's speaker tag so that the model answers
    in character; the post-processor strips the tag again if it is echoed.
    """
    system = system_message or build_system_message(platform, word_count, assistant)
    user = USER_TEMPLATE.format(
        request=user_message, assistant=assistant, platform=platform.value
    )
    return f"{system}\n\n{user}\n\n{assistant}:"


def build_image_prompt(platform: Platform, prompt: str) -> str:
    return IMAGE_TEMPLATE.format(platform=platform.value, prompt=prompt)
