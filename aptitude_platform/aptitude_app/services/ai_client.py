"""Thin client for OpenAI-compatible chat completion endpoints (OpenRouter)."""

from __future__ import annotations

import json
from dataclasses import dataclass, field

import requests
from flask import current_app


@dataclass
class AIClient:
    api_key: str
    api_base: str
    default_model: str
    extra_headers: dict = field(default_factory=dict)

    def chat(
        self,
        messages,
        model: str | None = None,
        temperature: float = 0.7,
        json_mode: bool = True,
    ):
        """Send one completion request and return the decoded response body.

        Single shot: callers own the retry policy.
        """
        if not self.api_key:
            raise RuntimeError("AI_API_KEY / OPENROUTER_API_KEY is not configured")

        payload = {
            "model": model or self.default_model,
            "messages": messages,
            "temperature": temperature,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        app = current_app
        connect_timeout = app.config.get("AI_CONNECT_TIMEOUT_SEC", 15)
        read_timeout = app.config.get("AI_READ_TIMEOUT_SEC", 90)

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            **self.extra_headers,
        }
        response = requests.post(
            f"{self.api_base.rstrip('/')}/chat/completions",
            headers=headers,
            data=json.dumps(payload),
            timeout=(connect_timeout, read_timeout),
        )
        response.raise_for_status()
        return response.json()


def get_ai_client() -> AIClient:
    app = current_app
    client = app.extensions.get("ai_client")
    if client is None:
        headers = {}
        if app.config.get("AI_APP_REFERER"):
            headers["HTTP-Referer"] = app.config["AI_APP_REFERER"]
        if app.config.get("AI_APP_TITLE"):
            headers["X-Title"] = app.config["AI_APP_TITLE"]
        client = AIClient(
            api_key=app.config.get("AI_API_KEY", ""),
            api_base=app.config.get("AI_API_BASE", "https://openrouter.ai/api/v1"),
            default_model=app.config.get("AI_GENERATOR_MODEL", "google/gemini-2.0-flash-001"),
            extra_headers=headers,
        )
        app.extensions["ai_client"] = client
    return client
