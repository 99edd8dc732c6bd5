import asyncio
import logging

from google import genai
from google.genai import types

from receipt_reader.config import Settings
from receipt_reader.errors import BackendUnavailable
from receipt_reader.receipt.base import ReceiptPrompt
from receipt_reader.receipt.normalize import reply_text

logger = logging.getLogger("receipt_reader")


class GeminiReceiptGenerator:
    """Receipt extraction using Gemini on Vertex AI through the google-genai SDK."""

    def __init__(self, settings: Settings, client: genai.Client | None = None):
        self.settings = settings
        self._client = client

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(
                vertexai=True,
                project=self.settings.project,
                location=self.settings.location,
            )
        return self._client

    def build_request(self, prompt: ReceiptPrompt) -> dict:
        return {
            "model": self.settings.model,
            "contents": [
                types.Content(
                    role="user",
                    parts=[
                        types.Part.from_text(text=prompt.text),
                        types.Part.from_uri(file_uri=prompt.image_uri, mime_type=prompt.mime_type),
                    ],
                )
            ],
            "config": types.GenerateContentConfig(
                system_instruction=types.Content(
                    role="system", parts=[types.Part.from_text(text=prompt.instructions)]
                ),
                max_output_tokens=self.settings.max_output_tokens,
            ),
        }

    async def generate(self, prompt: ReceiptPrompt) -> str:
        request = self.build_request(prompt)
        try:
            response = await asyncio.wait_for(
                self.client.aio.models.generate_content(**request),
                timeout=self.settings.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise BackendUnavailable(
                f"{self.settings.model} did not answer within {self.settings.timeout_seconds}s"
            ) from e
        except Exception as e:
            raise BackendUnavailable(f"{self.settings.model} call failed: {e}") from e

        return reply_text(response)
