import pytest
from fastapi.testclient import TestClient

from lynqai.__main__ import app
from lynqai.errors import Unauthenticated, UpstreamError, UpstreamUnavailable
from lynqai.models.conversation import Platform, Sender, TextMessage
from lynqai.routes.chat.orchestrator import ChatOrchestrator
from lynqai.routes.chat.route import get_orchestrator
from lynqai.utils.auth import AuthenticatedUser, get_token_verifier
from lynqai.utils.generation_client import GeneratedImage

AUTH = {"Authorization": "Bearer good-token"}
OTHER_AUTH = {"Authorization": "Bearer other-token"}


class FakeVerifier:
    tokens = {
        "good-token": AuthenticatedUser(uid="user-1"),
        "other-token": AuthenticatedUser(uid="user-2"),
    }

    def __init__(self):
        self.calls = 0

    def verify(self, token):
        self.calls += 1
        if token not in self.tokens:
            raise Unauthenticated("Invalid credential")
        return self.tokens[token]


@pytest.fixture
def verifier():
    return FakeVerifier()


@pytest.fixture
def orchestrator(generation_client, store):
    return ChatOrchestrator(generation_client, store)


@pytest.fixture
def client(orchestrator, verifier):
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_token_verifier] = lambda: verifier
    yield TestClient(app)
    app.dependency_overrides.clear()


def text_body(**overrides):
    body = {"userMessage": "Announce our webinar", "platform": "LinkedIn", "wordCount": 10}
    body.update(overrides)
    return body


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_generate_text_creates_conversation(client, generation_client, store):
    generation_client.generate_text.return_value = "Sam: Great idea! Try posting at 9am. It boosts"

    response = client.post("/generate-text", json=text_body(), headers=AUTH)

    assert response.status_code == 200
    data = response.json()
    assert data["generated_text"] == "Great idea! Try posting at 9am."
    assert data["isComplete"] is False

    conversation = store.get_conversation(data["conversationId"])
    assert conversation.user_id == "user-1"
    assert conversation.platform == Platform.LINKEDIN
    assert [(m.sender, m.text) for m in conversation.messages] == [
        (Sender.USER, "Announce our webinar"),
        (Sender.ASSISTANT, "Great idea! Try posting at 9am."),
    ]


def test_generate_text_prompt_embeds_platform_and_word_count(client, generation_client):
    generation_client.generate_text.return_value = "Keep it short."

    client.post("/generate-text", json=text_body(platform="Twitter", wordCount=25), headers=AUTH)

    prompt = generation_client.generate_text.call_args.args[0]
    assert "Content Strategist for Twitter" in prompt
    assert "Limit responses to 25 words." in prompt
    assert '"Announce our webinar"' in prompt
    assert prompt.endswith("Sam:")


def test_generate_text_uses_caller_system_message(client, generation_client):
    generation_client.generate_text.return_value = "Done."

    client.post(
        "/generate-text",
        json=text_body(systemMessage="You write haiku only."),
        headers=AUTH,
    )

    prompt = generation_client.generate_text.call_args.args[0]
    assert prompt.startswith("You write haiku only.\n\n")
    assert "Content Strategist for LinkedIn. Provide concise" not in prompt


def test_new_turns_get_fresh_ids_and_existing_id_is_reused(client, generation_client, store):
    generation_client.generate_text.return_value = "First reply."

    first = client.post("/generate-text", json=text_body(), headers=AUTH).json()
    second = client.post("/generate-text", json=text_body(), headers=AUTH).json()
    assert first["conversationId"] != second["conversationId"]

    third = client.post(
        "/generate-text",
        json=text_body(conversationId=first["conversationId"]),
        headers=AUTH,
    ).json()
    assert third["conversationId"] == first["conversationId"]
    assert len(store.list_conversations("user-1")) == 2
    assert len(store.get_conversation(first["conversationId"]).messages) == 4


def test_generate_text_upstream_503_persists_nothing(client, generation_client, store):
    generation_client.generate_text.side_effect = UpstreamError(
        "Inference endpoint returned an error", status_code=503, body="Model is loading"
    )

    response = client.post("/generate-text", json=text_body(), headers=AUTH)

    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "Failed to generate text."
    assert "503" in data["details"]
    assert store.list_conversations("user-1") == []


def test_generate_text_failure_does_not_touch_existing_conversation(client, generation_client, store):
    conversation_id = store.create_conversation(
        "user-1",
        Platform.LINKEDIN,
        [TextMessage(sender=Sender.USER, text="hi"), TextMessage(sender=Sender.ASSISTANT, text="Hello.")],
    )
    before = store.get_conversation(conversation_id)
    generation_client.generate_text.side_effect = UpstreamUnavailable("unreachable")

    response = client.post(
        "/generate-text", json=text_body(conversationId=conversation_id), headers=AUTH
    )

    assert response.status_code == 500
    assert store.get_conversation(conversation_id) == before


def test_generate_text_unknown_conversation(client, generation_client):
    response = client.post(
        "/generate-text", json=text_body(conversationId="missing"), headers=AUTH
    )

    assert response.status_code == 404
    assert response.json()["error"] == "Conversation not found"
    generation_client.generate_text.assert_not_called()


def test_generate_text_other_users_conversation(client, generation_client):
    generation_client.generate_text.return_value = "Mine."
    owned = client.post("/generate-text", json=text_body(), headers=AUTH).json()["conversationId"]
    generation_client.generate_text.reset_mock()

    response = client.post(
        "/generate-text", json=text_body(conversationId=owned), headers=OTHER_AUTH
    )

    assert response.status_code == 404
    generation_client.generate_text.assert_not_called()


def test_generate_text_rejects_zero_word_count(client, generation_client):
    response = client.post("/generate-text", json=text_body(wordCount=0), headers=AUTH)
    assert response.status_code == 422
    generation_client.generate_text.assert_not_called()


def test_generate_image_creates_conversation(client, generation_client, store):
    generation_client.generate_image.return_value = GeneratedImage(data=b"img", content_type="image/jpeg")

    response = client.post(
        "/generate-image",
        json={"prompt": "a sunrise", "platform": "Instagram"},
        headers=AUTH,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["generated_image"] == "data:image/jpeg;base64,aW1n"
    generation_client.generate_image.assert_called_once_with("a sunrise", Platform.INSTAGRAM)

    messages = store.get_conversation(data["conversationId"]).messages
    assert messages[0].text == "a sunrise"
    assert messages[1].kind == "image"
    assert messages[1].image_url == data["generated_image"]


def test_generate_image_failure(client, generation_client, store):
    generation_client.generate_image.side_effect = UpstreamUnavailable("timed out")

    response = client.post(
        "/generate-image", json={"prompt": "a sunrise", "platform": "Instagram"}, headers=AUTH
    )

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to generate image."
    assert store.list_conversations("user-1") == []


def test_add_message(client, store):
    conversation_id = store.create_conversation(
        "user-1", Platform.FACEBOOK, [TextMessage(sender=Sender.USER, text="hi")]
    )

    response = client.post(
        "/add-message",
        json={"conversationId": conversation_id, "message": {"sender": "assistant", "imageURL": "data:image/png;base64,AA"}},
        headers=AUTH,
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Message added successfully"}
    messages = store.get_conversation(conversation_id).messages
    assert messages[-1].kind == "image"
    assert messages[-1].sender == Sender.ASSISTANT


def test_add_message_missing_conversation(client):
    response = client.post(
        "/add-message",
        json={"conversationId": "missing", "message": {"sender": "user", "text": "hello"}},
        headers=AUTH,
    )
    assert response.status_code == 404


@pytest.mark.parametrize(
    "message",
    [
        {"sender": "user"},
        {"sender": "user", "text": "hi", "imageURL": "data:image/png;base64,AA"},
        {"sender": "robot", "text": "hi"},
    ],
)
def test_add_message_rejects_ambiguous_shapes(client, message):
    response = client.post(
        "/add-message", json={"conversationId": "any", "message": message}, headers=AUTH
    )
    assert response.status_code == 422


def test_list_and_get_conversations(client, generation_client):
    generation_client.generate_text.return_value = "Reply."
    first = client.post("/generate-text", json=text_body(), headers=AUTH).json()["conversationId"]
    second = client.post("/generate-text", json=text_body(), headers=AUTH).json()["conversationId"]

    listed = client.get("/conversations", headers=AUTH).json()["conversations"]
    assert [c["id"] for c in listed] == [second, first]
    assert listed[0]["userId"] == "user-1"
    assert {"createdAt", "lastUpdated", "platform", "messages"} <= set(listed[0])

    conversation = client.get(f"/conversations/{first}", headers=AUTH).json()
    assert [m["sender"] for m in conversation["messages"]] == ["user", "assistant"]
    assert conversation["messages"][1]["text"] == "Reply."
    assert conversation["messages"][1]["messageId"]

    assert client.get(f"/conversations/{first}", headers=OTHER_AUTH).status_code == 404
    assert client.get("/conversations", headers=OTHER_AUTH).json() == {"conversations": []}


REQUESTS = [
    ("post", "/generate-text", text_body()),
    ("post", "/generate-image", {"prompt": "a sunrise", "platform": "Instagram"}),
    ("post", "/add-message", {"conversationId": "any", "message": {"sender": "user", "text": "hi"}}),
    ("get", "/conversations", None),
]


@pytest.mark.parametrize("method,path,body", REQUESTS)
@pytest.mark.parametrize("headers", [{}, {"Authorization": "Basic abc"}, {"Authorization": "Bearer"}])
def test_missing_credential_rejected_before_any_work(
    client, verifier, generation_client, store, method, path, body, headers
):
    response = client.request(method, path, json=body, headers=headers)

    assert response.status_code == 401
    assert verifier.calls == 0
    generation_client.generate_text.assert_not_called()
    generation_client.generate_image.assert_not_called()
    assert store.list_conversations("user-1") == []


@pytest.mark.parametrize("method,path,body", REQUESTS)
def test_invalid_credential_rejected_before_any_work(
    client, verifier, generation_client, store, method, path, body
):
    response = client.request(
        method, path, json=body, headers={"Authorization": "Bearer forged"}
    )

    assert response.status_code == 401
    assert response.text == "Unauthorized"
    assert verifier.calls == 1
    generation_client.generate_text.assert_not_called()
    generation_client.generate_image.assert_not_called()
    assert store.list_conversations("user-1") == []
