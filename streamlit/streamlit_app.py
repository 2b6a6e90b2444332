import base64
from datetime import datetime

import streamlit as st
import requests
from config import (  # type: ignore
    API_BASE_URL,
    DEFAULT_WORD_COUNT,
    EXAMPLE_PROMPTS,
    FIREBASE_SIGN_IN_URL,
    FIREBASE_WEB_API_KEY,
    PLATFORMS,
    REQUEST_TIMEOUT,
    STREAMLIT_CONFIG,
)

def init_session_state():
    """Initialize session state variables"""
    if "id_token" not in st.session_state:
        st.session_state.id_token = None
    if "user_email" not in st.session_state:
        st.session_state.user_email = None
    if "conversation_id" not in st.session_state:
        st.session_state.conversation_id = None
    if "conversation" not in st.session_state:
        st.session_state.conversation = None
    if "platform" not in st.session_state:
        st.session_state.platform = PLATFORMS[0]

def sign_in(email, password):
    """Exchange email and password for a Firebase ID token"""
    try:
        response = requests.post(
            FIREBASE_SIGN_IN_URL,
            params={"key": FIREBASE_WEB_API_KEY},
            json={"email": email, "password": password, "returnSecureToken": True},
            timeout=REQUEST_TIMEOUT,
        )
        if response.status_code == 200:
            data = response.json()
            st.session_state.id_token = data["idToken"]
            st.session_state.user_email = data.get("email", email)
            return True
        st.error("Sign-in failed. Check your email and password.")
        return False
    except requests.RequestException as e:
        st.error(f"Error signing in: {str(e)}")
        return False

def sign_out():
    for key in ("id_token", "user_email", "conversation_id", "conversation"):
        st.session_state[key] = None

def auth_headers():
    return {"Authorization": f"Bearer {st.session_state.id_token}"}

def api_request(method, path, payload=None):
    """Call the LynqAI API; returns the decoded JSON body or None"""
    try:
        response = requests.request(
            method,
            f"{API_BASE_URL}{path}",
            json=payload,
            headers=auth_headers(),
            timeout=REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        st.error(f"Error contacting the API: {str(e)}")
        return None

    if response.status_code == 401:
        st.warning("Your session has expired. Please sign in again.")
        sign_out()
        return None
    if response.status_code != 200:
        try:
            error = response.json().get("error", response.text)
        except ValueError:
            error = response.text
        st.error(f"API Error: {response.status_code} - {error}")
        return None
    return response.json()

def fetch_conversations():
    data = api_request("GET", "/conversations")
    return data["conversations"] if data else []

def load_conversation(conversation_id):
    """Refresh the displayed conversation from the server"""
    conversation = api_request("GET", f"/conversations/{conversation_id}")
    if conversation:
        st.session_state.conversation_id = conversation_id
        st.session_state.conversation = conversation
        st.session_state.platform = conversation["platform"]

def start_new_conversation():
    st.session_state.conversation_id = None
    st.session_state.conversation = None

def run_turn(prompt, turn_type):
    """Run a text or image turn, then reload the conversation it landed in"""
    if turn_type == "Image":
        payload = {
            "prompt": prompt,
            "platform": st.session_state.platform,
            "conversationId": st.session_state.conversation_id,
        }
        with st.spinner("🎨 Generating image..."):
            data = api_request("POST", "/generate-image", payload)
    else:
        payload = {
            "userMessage": prompt,
            "platform": st.session_state.platform,
            "conversationId": st.session_state.conversation_id,
            "wordCount": DEFAULT_WORD_COUNT,
        }
        with st.spinner("✍️ Writing..."):
            data = api_request("POST", "/generate-text", payload)
        if data and not data["isComplete"]:
            st.session_state.notice = "The reply came in shorter than requested. Ask for more detail to extend it."

    if not data:
        return False
    load_conversation(data["conversationId"])
    return True

def decode_data_uri(uri):
    _, encoded = uri.split(",", 1)
    return base64.b64decode(encoded)

def format_timestamp(value):
    if not value:
        return "Unknown time"
    return datetime.fromisoformat(value).strftime("%Y-%m-%d %H:%M")

def display_message(message, platform):
    """Display a message in the chat interface"""
    with st.chat_message(message["sender"]):
        st.caption(platform)
        if message["kind"] == "image":
            st.image(decode_data_uri(message["imageURL"]))
        else:
            st.markdown(message["text"])
        st.caption(format_timestamp(message.get("timestamp")))

def conversation_title(conversation):
    messages = conversation.get("messages") or []
    first_text = next((m["text"] for m in messages if m["kind"] == "text"), None)
    return (first_text or "No messages")[:40]

def render_login():
    st.title("Login to LynqAI")
    with st.form("login"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        if st.form_submit_button("Sign in"):
            if sign_in(email, password):
                st.rerun()

def render_sidebar():
    with st.sidebar:
        st.title("✍️ LynqAI")
        st.caption(f"Signed in as {st.session_state.user_email}")
        if st.button("Sign out", use_container_width=True):
            sign_out()
            st.rerun()

        st.markdown("---")

        if st.button("🆕 New Conversation", use_container_width=True):
            start_new_conversation()
            st.rerun()

        st.markdown("### Conversations")
        conversations = fetch_conversations()
        if not conversations:
            st.caption("No conversations yet")
        for conv in conversations:
            label = f"{conversation_title(conv)} · {format_timestamp(conv.get('lastUpdated'))}"
            if st.button(label, key=f"conv_{conv['id']}", use_container_width=True):
                load_conversation(conv["id"])
                st.rerun()

        st.markdown("---")

        st.markdown("### Example Prompts")
        for example in EXAMPLE_PROMPTS:
            if st.button(example, key=f"example_{example}"):
                st.session_state.example_prompt = example
                st.rerun()

def main():
    st.set_page_config(
        page_title=STREAMLIT_CONFIG["page_title"],
        page_icon=STREAMLIT_CONFIG["page_icon"],
        layout=STREAMLIT_CONFIG["layout"],
        initial_sidebar_state=STREAMLIT_CONFIG["initial_sidebar_state"]
    )

    init_session_state()

    if not st.session_state.id_token:
        render_login()
        return

    render_sidebar()

    conversation = st.session_state.conversation
    if conversation:
        created = format_timestamp(conversation.get("createdAt"))
        st.title(f"💬 Conversation from {created}")
    else:
        st.title("💬 Social Media Post Generator")

    if "notice" in st.session_state:
        st.info(st.session_state.pop("notice"))

    st.session_state.platform = st.radio(
        "Platform",
        PLATFORMS,
        index=PLATFORMS.index(st.session_state.platform),
        horizontal=True,
        disabled=conversation is not None,
    )
    turn_type = st.radio("Generate", ["Text", "Image"], horizontal=True)

    if conversation:
        for message in conversation["messages"]:
            display_message(message, conversation["platform"])

    prompt = st.chat_input("Type your prompt here...")
    if "example_prompt" in st.session_state:
        prompt = st.session_state.pop("example_prompt")

    if prompt and run_turn(prompt, turn_type):
        st.rerun()

if __name__ == "__main__":
    main()
