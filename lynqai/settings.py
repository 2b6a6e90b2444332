from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

HF_INFERENCE_API = "https://api-inference.huggingface.co/models"


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    db_url: str
    api_key: str
    port: int = Field(default=3000)
    cors_origins: list[str] = Field(default=["http://localhost:3001"])
    firebase_credentials: str | None = Field(default=None)
    text_model_url: str = Field(default=f"{HF_INFERENCE_API}/mistralai/Mistral-7B-Instruct-v0.3")
    image_model_url: str = Field(default=f"{HF_INFERENCE_API}/stabilityai/stable-diffusion-xl-base-1.0")
    upstream_timeout: float = Field(default=120.0)
    assistant_name: str = Field(default="Sam")
    default_word_count: int = Field(default=50)
    max_new_tokens: int = Field(default=100)
    temperature: float = Field(default=0.7)
    top_p: float = Field(default=0.95)
    do_sample: bool = Field(default=True)

config = Config() # type: ignore
