"""
REST clients for LLM interactions.

Both clients expose the same two calls used by the interview engine:
``generate_content`` (free text) and ``generate_json`` (a parsed JSON object).
"""
import json
import logging
from typing import Optional, Dict, Any, List

import requests
import google.auth
import google.auth.transport.requests
from google.oauth2 import service_account

from ...config import (
    Config, ANALYSIS_TEMPERATURE, DEFAULT_VERTEX_LOCATION, DEFAULT_MODEL_NAME, DEFAULT_LLM_TIMEOUT,
    DEFAULT_MAX_OUTPUT_TOKENS, OPENAI_BASE_URL, OPENAI_MODEL_NAME
)
from ...errors import ConfigurationError
from ...interview.schemas import extract_json_object

logger = logging.getLogger("llm_client")


class LLMError(RuntimeError):
    """The LLM endpoint answered with an HTTP error."""

    def __init__(self, provider: str, status_code: int, body: str):
        super().__init__(f"{provider} REST error {status_code}: {body}")
        self.provider = provider
        self.status_code = status_code
        self.body = body


class _JsonGenerationMixin:
    """Shared JSON-mode helper; subclasses provide ``generate_content``."""

    def generate_json(self, prompt: str) -> Dict[str, Any]:
        """
        Generate JSON response from LLM with defensive parsing.
        Automatically appends instruction to respond with JSON only.
        """
        prompt_json = prompt.strip() + "\n\nRespond ONLY with minified JSON."
        logger.debug("Sending JSON prompt to LLM...")

        try:
            text = self.generate_content(prompt_json, temperature=ANALYSIS_TEMPERATURE, max_output_tokens=DEFAULT_MAX_OUTPUT_TOKENS)
        except Exception as e:
            logger.error("LLM request failed: %s", e)
            raise

        logger.debug("Raw LLM output: %s", repr(text))
        parsed = extract_json_object(text)
        logger.debug("Parsed JSON successfully")
        return parsed


class VertexRestClient(_JsonGenerationMixin):
    """REST-based client for Vertex AI Gemini models."""

    def __init__(self,
                 project: str,
                 location: str = DEFAULT_VERTEX_LOCATION,
                 model: str = DEFAULT_MODEL_NAME,
                 credentials_json: Optional[str] = None,
                 timeout: int = DEFAULT_LLM_TIMEOUT):
        self.project = project
        self.location = location
        self.model = model
        self.credentials_json = credentials_json
        self.base_url = f"https://{self.location}-aiplatform.googleapis.com/v1"
        self.model_resource = f"projects/{self.project}/locations/{self.location}/publishers/google/models/{self.model}"
        self._token = None
        self.timeout = timeout

    def _refresh_token(self):
        """Refresh the OAuth token for API calls."""
        if self.credentials_json:
            creds = service_account.Credentials.from_service_account_file(
                self.credentials_json,
                scopes=["https://www.googleapis.com/auth/cloud-platform"],
            )
        else:
            creds, _ = google.auth.default(scopes=["https://www.googleapis.com/auth/cloud-platform"])

        auth_req = google.auth.transport.requests.Request()
        creds.refresh(auth_req)
        self._token = creds.token

    def _ensure_token(self):
        if not self._token:
            self._refresh_token()

    def generate_content(
        self,
        prompt_text: str,
        temperature: float = 0.0,
        max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
        system_prompt: Optional[str] = None,
        stop_sequences: Optional[List[str]] = None,
    ) -> str:
        """Generate content using the Vertex AI REST API."""
        self._ensure_token()
        url = f"{self.base_url}/{self.model_resource}:generateContent"

        body: Dict[str, Any] = {
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": prompt_text}],
                }
            ],
            "generationConfig": {
                "temperature": float(temperature),
                "maxOutputTokens": int(max_output_tokens),
            },
        }
        if system_prompt:
            body["systemInstruction"] = {"parts": [{"text": system_prompt}]}
        if stop_sequences:
            body["generationConfig"]["stopSequences"] = list(stop_sequences)

        headers = {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
        }

        resp = requests.post(url, headers=headers, json=body, timeout=self.timeout)
        if resp.status_code >= 400:
            raise LLMError("Vertex", resp.status_code, resp.text)

        return self._parse_response_text(resp.json())

    def _parse_response_text(self, resp_json: Dict[str, Any]) -> str:
        """
        Parse response JSON to extract text content.
        Tries Vertex schema first, then a top-level "text" field.
        Raises ValueError when the response carries no text at all.
        """
        # Vertex schema: candidates[0].content.parts[0].text
        cands = resp_json.get("candidates") or []
        if cands and isinstance(cands[0], dict):
            content = cands[0].get("content") or {}
            parts = content.get("parts") or []
            for p in parts:
                if isinstance(p, dict) and isinstance(p.get("text"), str):
                    return p["text"]
            if isinstance(content.get("text"), str):
                return content["text"]

        if isinstance(resp_json.get("text"), str):
            return resp_json["text"]

        # No text part, e.g. a prompt blocked by safety filters
        raise ValueError(f"Vertex response has no text: {json.dumps(resp_json, separators=(',', ':'))[:500]}")


class ChatCompletionsClient(_JsonGenerationMixin):
    """REST client for OpenAI-compatible chat completion endpoints."""

    def __init__(self,
                 api_key: str,
                 model: str = OPENAI_MODEL_NAME,
                 base_url: str = OPENAI_BASE_URL,
                 timeout: int = DEFAULT_LLM_TIMEOUT):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def generate_content(
        self,
        prompt_text: str,
        temperature: float = 0.0,
        max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
        system_prompt: Optional[str] = None,
        stop_sequences: Optional[List[str]] = None,
    ) -> str:
        """Generate content using the chat completions API."""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt_text})

        body: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": float(temperature),
            "max_tokens": int(max_output_tokens),
        }
        if stop_sequences:
            body["stop"] = list(stop_sequences)

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        resp = requests.post(f"{self.base_url}/chat/completions", headers=headers, json=body, timeout=self.timeout)
        if resp.status_code >= 400:
            raise LLMError("Chat completions", resp.status_code, resp.text)

        data = resp.json()
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        if not isinstance(content, str):
            raise ValueError(f"Unexpected chat completions response: {json.dumps(data)[:500]}")
        return content


def create_llm_client(config: Config):
    """Build the LLM client selected by ``config.llm_provider``."""
    if config.llm_provider == "openai":
        if not config.openai_api_key:
            raise ConfigurationError("openai provider selected but no API key configured")
        return ChatCompletionsClient(
            api_key=config.openai_api_key,
            model=config.model_name,
            base_url=config.openai_base_url,
            timeout=config.llm_timeout,
        )
    if config.llm_provider == "vertex":
        if not config.google_cloud_project:
            raise ConfigurationError("vertex provider selected but no Google Cloud project configured")
        return VertexRestClient(
            project=config.google_cloud_project,
            location=config.vertex_location,
            model=config.model_name,
            credentials_json=config.google_application_credentials,
            timeout=config.llm_timeout,
        )
    raise ConfigurationError(f"Unknown LLM provider: {config.llm_provider}")
