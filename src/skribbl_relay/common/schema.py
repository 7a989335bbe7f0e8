"""Pydantic models for request/response types."""
from __future__ import annotations
from typing import Any

from pydantic import BaseModel


class UploadIn(BaseModel):
    # anything falsy counts as "no image"; non-strings are rejected in the route
    image: Any = None


class WordsOut(BaseModel):
    words: list[Any]


class ErrorOut(BaseModel):
    error: str
