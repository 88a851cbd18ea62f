"""Gemini-backed ``TextClient`` used when an API key is available."""

from __future__ import annotations

import json
import logging
import os
from typing import Any

import google.generativeai as genai
from google.api_core import exceptions as google_api_exceptions

from .errors import GenerationError
from .models import BookConfig, BookOutline, ChapterOutline

logger = logging.getLogger(__name__)

API_KEY_ENV = "GEMINI_API_KEY"
OUTLINE_MODEL = "gemini-2.5-flash"
CHAPTER_MODEL = "gemini-2.5-pro"


class GeminiClient:
    """Draft outlines and chapters through the Gemini API.

    Upstream API failures are re-raised as ``GenerationError`` carrying the
    HTTP code and gRPC status name, which drive the retry heuristic.

    Args:
        api_key: Gemini API key.
        outline_model: Model used for outlines.
        chapter_model: Model used for chapters.
    """

    def __init__(
        self,
        api_key: str,
        *,
        outline_model: str = OUTLINE_MODEL,
        chapter_model: str = CHAPTER_MODEL,
    ) -> None:
        genai.configure(api_key=api_key)
        json_config = genai.types.GenerationConfig(response_mime_type="application/json")
        self._outline_model = genai.GenerativeModel(outline_model, generation_config=json_config)
        self._chapter_model = genai.GenerativeModel(chapter_model, generation_config=json_config)

    @classmethod
    def from_env(cls) -> "GeminiClient | None":
        """Return a client when ``GEMINI_API_KEY`` is set, else None."""

        api_key = os.getenv(API_KEY_ENV, "").strip()
        return cls(api_key) if api_key else None

    def draft_outline(self, config: BookConfig) -> BookOutline:
        prompt = (
            "You are a book author assistant. Generate a book outline for a book with these "
            "properties:\n"
            f'- Title: "{config.title}"\n'
            f'- Topic: "{config.topic}"\n'
            f'- Genre: "{config.genre}"\n'
            f'- Target Audience: "{config.target_audience}"\n'
            f'- Language: "{config.language}"\n'
            f'- Tone: "{config.tone}"\n'
            f"- Number of Chapters: {config.chapters_count}\n"
            "Respond with JSON: {\"title\": str, \"chapters\": [{\"index\": int, \"title\": str, "
            "\"shortDescription\": str}]}. Ensure the content is safe and suitable for the "
            "target audience."
        )
        payload = self._generate_json(model=self._outline_model, prompt=prompt)
        try:
            return BookOutline(
                title=str(payload["title"]),
                chapters=[
                    ChapterOutline(
                        index=int(item["index"]),
                        title=str(item["title"]),
                        short_description=str(item.get("shortDescription", "")),
                    )
                    for item in payload["chapters"]
                ],
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise GenerationError(f"Malformed outline response: {exc}") from exc

    def draft_chapter(self, config: BookConfig, chapter: ChapterOutline) -> str:
        prompt = (
            "You are a book author. Write the full content for a single chapter of a book.\n"
            f'Book: Title "{config.title}", Topic "{config.topic}", Genre "{config.genre}", '
            f'Audience "{config.target_audience}", Language "{config.language}", '
            f'Tone "{config.tone}".\n'
            f'Chapter {chapter.index}: "{chapter.title}". {chapter.short_description}\n'
            f"Write about {config.words_per_chapter} words, well structured, using markdown "
            'headings where appropriate. Respond with JSON: {"text": str}.'
        )
        payload = self._generate_json(model=self._chapter_model, prompt=prompt)
        text = payload.get("text") if isinstance(payload, dict) else None
        if not isinstance(text, str):
            raise GenerationError("Chapter response is missing its text")
        return text

    def _generate_json(self, *, model: Any, prompt: str) -> Any:
        """Send ``prompt`` and parse the JSON reply.

        Args:
            model: GenerativeModel to call.
            prompt: Prompt text.
        Returns:
            Parsed JSON value.
        """

        try:
            response = model.generate_content(prompt)
            raw = response.text
        except google_api_exceptions.GoogleAPICallError as exc:
            status = exc.grpc_status_code.name if exc.grpc_status_code is not None else None
            raise GenerationError(str(exc), code=exc.code, status=status) from exc
        except ValueError as exc:
            raise GenerationError(f"Response had no text: {exc}") from exc
        try:
            return json.loads(raw.strip())
        except json.JSONDecodeError as exc:
            raise GenerationError(f"Response was not valid JSON: {exc}") from exc
