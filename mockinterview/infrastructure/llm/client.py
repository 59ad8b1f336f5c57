"""
Vertex AI REST client for one-shot LLM generations (questions, feedback).
"""
import json
import logging
from typing import Optional, Dict, Any, List

import requests
import google.auth
import google.auth.exceptions
import google.auth.transport.requests
from google.oauth2 import service_account

from ...config import VERTEX_LOCATION, MODEL_NAME, LLM_TIMEOUT, MAX_OUTPUT_TOKENS

logger = logging.getLogger("llm_client")

_SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]


class LLMRequestError(RuntimeError):
    """Raised when the model endpoint rejects or fails a request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class VertexRestClient:
    """REST-based client for Vertex AI Gemini models."""

    def __init__(self,
                 project: str,
                 location: str = VERTEX_LOCATION,
                 model: str = MODEL_NAME,
                 credentials_json: Optional[str] = None,
                 timeout: int = LLM_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.project = project
        self.location = location
        self.model = model
        self.credentials_json = credentials_json
        self.base_url = f"https://{self.location}-aiplatform.googleapis.com/v1"
        self.model_resource = f"projects/{self.project}/locations/{self.location}/publishers/google/models/{self.model}"
        self.timeout = timeout
        self._session = session or requests.Session()
        self._creds = None

    def _credentials(self):
        if self._creds is None:
            if self.credentials_json:
                self._creds = service_account.Credentials.from_service_account_file(
                    self.credentials_json, scopes=_SCOPES,
                )
            else:
                self._creds, _ = google.auth.default(scopes=_SCOPES)
        return self._creds

    def _token(self) -> str:
        """Return a valid OAuth token, refreshing when missing or expired."""
        try:
            creds = self._credentials()
            if not creds.valid:
                creds.refresh(google.auth.transport.requests.Request())
        except google.auth.exceptions.GoogleAuthError as e:
            raise LLMRequestError(f"Google authentication failed: {e}") from e
        return creds.token

    def generate_content(
        self,
        prompt_text: str,
        temperature: float = 0.7,
        max_output_tokens: int = MAX_OUTPUT_TOKENS,
        system_instruction: Optional[str] = None,
        stop_sequences: Optional[List[str]] = None,
    ) -> str:
        """
        Generate text for a single user prompt.

        Raises:
            LLMRequestError: On transport failure or a non-2xx response
        """
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
        if system_instruction:
            body["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        if stop_sequences:
            body["generationConfig"]["stopSequences"] = list(stop_sequences)

        headers = {
            "Authorization": f"Bearer {self._token()}",
            "Content-Type": "application/json",
        }

        try:
            resp = self._session.post(url, headers=headers, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise LLMRequestError(f"Vertex request failed: {e}") from e

        if resp.status_code >= 400:
            logger.error("Vertex REST error %s: %s", resp.status_code, resp.text)
            raise LLMRequestError(f"Vertex REST error {resp.status_code}", status_code=resp.status_code)

        return self._parse_response_text(resp.json())

    def _parse_response_text(self, resp_json: Dict[str, Any]) -> str:
        """
        Extract text content from a response.
        Tries the Vertex schema first, then falls back to alternatives.
        """
        # Vertex schema: candidates[0].content.parts[*].text
        cands = resp_json.get("candidates") or []
        if cands and isinstance(cands[0], dict):
            content = cands[0].get("content") or {}
            parts = content.get("parts") or []
            texts = [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
            if texts:
                return "".join(texts)
            if isinstance(content.get("text"), str):
                return content["text"]

        if isinstance(resp_json.get("text"), str):
            return resp_json["text"]

        # Last resort: hand back the JSON so the caller's parser can reject it
        logger.warning("Unrecognized Vertex response shape")
        return json.dumps(resp_json, separators=(",", ":"))
