"""Optional description service backed by Google Gemini.

The staged sequence asks the model for a short description of the cleanup
job. The answer is only logged; it never reaches the pixel pipeline. Every
failure surfaces as `CollaboratorUnavailable` so the caller can discard it.
"""

import os
from typing import Optional

import google.generativeai as genai

from .errors import CollaboratorUnavailable
from .utils import setup_logger

logger = setup_logger(__name__)

DEFAULT_MODEL = "gemini-1.5-flash"

PROMPT_TEMPLATE = (
    "Describe in one sentence how watermark overlays typical of {platform} "
    "would be removed from the video '{source}' using bilateral patch "
    "interpolation and texture frequency matching."
)


class DescriptionClient:
    """Thin async wrapper around a Gemini text model."""

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None):
        self.api_key = api_key or os.getenv("GEMINI_API_KEY")
        self.model_name = model_name or os.getenv("UNMARK_GEMINI_MODEL", DEFAULT_MODEL)
        self._model = None

    def _get_model(self):
        if self._model is None:
            if not self.api_key:
                raise CollaboratorUnavailable("GEMINI_API_KEY not set")
            genai.configure(api_key=self.api_key)
            self._model = genai.GenerativeModel(self.model_name)
        return self._model

    async def describe(self, platform_guess: str, source_name: str) -> str:
        """Request a free-text description of the job.

        Raises:
            CollaboratorUnavailable: If the key is missing or the request fails
        """
        model = self._get_model()
        prompt = PROMPT_TEMPLATE.format(platform=platform_guess, source=source_name)
        try:
            response = await model.generate_content_async(prompt)
            return response.text.strip()
        except Exception as e:
            raise CollaboratorUnavailable(f"Gemini request failed: {e}") from e
