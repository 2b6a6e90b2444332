import os

# API Configuration
API_BASE_URL = os.getenv("LYNQAI_API_URL", "http://localhost:3000")
REQUEST_TIMEOUT = float(os.getenv("LYNQAI_REQUEST_TIMEOUT", "180"))

# Firebase Authentication (email/password sign-in through the REST API)
FIREBASE_WEB_API_KEY = os.getenv("FIREBASE_WEB_API_KEY", "")
FIREBASE_SIGN_IN_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"

# Streamlit Configuration
STREAMLIT_CONFIG = {
    "page_title": "LynqAI",
    "page_icon": "✍️",
    "layout": "wide",
    "initial_sidebar_state": "expanded"
}

PLATFORMS = ["LinkedIn", "Twitter", "Facebook", "Instagram"]
DEFAULT_WORD_COUNT = 50

# Example Prompts
EXAMPLE_PROMPTS = [
    "Announce our new product launch",
    "Share three tips for remote team productivity",
    "Celebrate reaching 10,000 followers",
    "Invite people to our upcoming webinar",
    "Promote a weekend discount on our summer collection",
]
