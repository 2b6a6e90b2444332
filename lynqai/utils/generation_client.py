import base64
import logging
from dataclasses import dataclass
from typing import Any, Dict

import requests

from lynqai.errors import UpstreamError, UpstreamUnavailable
from lynqai.models.conversation import Platform
from lynqai.settings import config
from lynqai.utils.prompts import build_image_prompt

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

DEFAULT_IMAGE_TYPE = "image/jpeg"
MAX_ERROR_BODY = 2000


@dataclass(frozen=True)
class TextGenerationParams:
    max_new_tokens: int = 100
    temperature: float = 0.7
    top_p: float = 0.95
    do_sample: bool = True

    @classmethod
    def from_config(cls) -> "TextGenerationParams":
        return cls(
            max_new_tokens=config.max_new_tokens,
            temperature=config.temperature,
            top_p=config.top_p,
            do_sample=config.do_sample,
        )


@dataclass(frozen=True)
class GeneratedImage:
    data: bytes
    content_type: str = DEFAULT_IMAGE_TYPE

    def to_data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"


class GenerationClient:
    """
    Thin wrapper around the hosted inference endpoints.

    One request per call, no retries: a failure is raised to the caller as
    ``UpstreamUnavailable`` (transport) or ``UpstreamError`` (bad response).
    """

    def __init__(
        self,
        api_key: str,
        text_model_url: str,
        image_model_url: str,
        timeout: float = 120.0,
        session: requests.Session | None = None,
    ) -> None:
        self.text_model_url = text_model_url
        self.image_model_url = image_model_url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {api_key}"})

    @classmethod
    def from_config(cls) -> "GenerationClient":
        return cls(
            api_key=config.api_key,
            text_model_url=config.text_model_url,
            image_model_url=config.image_model_url,
            timeout=config.upstream_timeout,
        )

    def _post(self, url: str, payload: Dict[str, Any]) -> requests.Response:
        logger.info(f"POST {url}")
        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"No response from {url}: {e}")
            raise UpstreamUnavailable(f"Inference endpoint unreachable: {e}") from e
        if not response.ok:
            body = response.text[:MAX_ERROR_BODY]
            logger.error(f"HTTP {response.status_code} from {url}: {body}")
            raise UpstreamError(
                "Inference endpoint returned an error",
                status_code=response.status_code,
                body=body,
            )
        return response

    def generate_text(self, prompt: str, params: TextGenerationParams | None = None) -> str:
        params = params or TextGenerationParams()
        response = self._post(
            self.text_model_url,
            {
                "inputs": prompt,
                "parameters": {
                    "max_new_tokens": params.max_new_tokens,
                    "return_full_text": False,
                    "do_sample": params.do_sample,
                    "temperature": params.temperature,
                    "top_p": params.top_p,
                },
            },
        )
        try:
            return response.json()[0]["generated_text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise UpstreamError(
                "Unexpected text generation payload",
                status_code=response.status_code,
                body=response.text[:MAX_ERROR_BODY],
            ) from e

    def generate_image(self, prompt: str, platform: Platform) -> GeneratedImage:
        response = self._post(
            self.image_model_url, {"inputs": build_image_prompt(platform, prompt)}
        )
        if not response.content:
            raise UpstreamError(
                "Empty image generation payload", status_code=response.status_code
            )
        content_type = response.headers.get("Content-Type", "").split(";")[0].strip()
        if not content_type.startswith("image/"):
            content_type = DEFAULT_IMAGE_TYPE
        return GeneratedImage(data=response.content, content_type=content_type)
