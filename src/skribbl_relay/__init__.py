"""
Skribbl relay package.

Provides:
- Prompt composition and Gemini client for drawing-to-word prediction
- Retrying prediction fetcher with tolerant reply parsing
- FastAPI relay exposing POST /upload
"""
