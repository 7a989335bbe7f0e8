"""Prompt templating helpers."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any

SYSTEM_INSTRUCTION = """You're an AI that helps solve Skribbl.io by analyzing a drawing.
Based on the drawing and possible hints (e.g., "_ _ _ _ _ (5)" means a 5-letter word), predict the 10 most likely words.

Strict output format:
Return an array of words in valid JSON format like this:

["word1", "word2", "word3", ..., "word10"]

Important rules:
- Only return an array (no extra text, explanations, or numbering).
- Each item in the array should be a single word (no phrases).
- Ensure proper JSON syntax.
"""

DEFAULT_MIME = "image/png"


@dataclass(frozen=True)
class Prompt:
    """System instruction plus the caller's image, built once per call."""
    system: str
    image: str

    def to_contents(self) -> dict[str, Any]:
        """Render into a Gemini generateContent body (generation config excluded)."""
        mime, data = split_data_url(self.image)
        return {
            "systemInstruction": {"parts": [{"text": self.system}]},
            "contents": [
                {
                    "role": "user",
                    "parts": [{"inlineData": {"mimeType": mime, "data": data}}],
                }
            ],
        }


def split_data_url(payload: str) -> tuple[str, str]:
    """
    Split an image payload into MIME type and base64 data.

    Args:
        payload: Either "data:<mime>;base64,<data>" or bare base64.

    Returns:
        (mime, data). Bare base64 is assumed to be PNG.
    """
    if payload.startswith("data:") and "," in payload:
        header, data = payload.split(",", 1)
        mime = header[len("data:"):].split(";", 1)[0]
        return mime or DEFAULT_MIME, data
    return DEFAULT_MIME, payload


def compose_prompt(image: str) -> Prompt:
    """
    Pair the fixed instruction with one image payload.

    Args:
        image: Non-empty encoded image.
    """
    return Prompt(system=SYSTEM_INSTRUCTION, image=image)
