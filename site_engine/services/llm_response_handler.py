"""
LLM Response Handler - Turn assistant message content into parseable text
"""

import logging
import re
from typing import Any, Dict, List, Union

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?```$", re.DOTALL)


class LLMResponseHandler:
    """
    Handle assistant message content from chat-completion APIs.

    Content is usually a plain string, but some providers return a list of
    typed content parts; reasoning and refusal parts are dropped.
    """

    # Content part types that never carry the answer text
    EXCLUDED_PARTS = [
        'reasoning',
        'thinking',
        'thought',
        'refusal',
        'metadata',
    ]

    @staticmethod
    def content_to_text(content: Union[str, List, Dict, None]) -> str:
        """
        Flatten message content into text

        Args:
            content: ``message.content`` as returned by the API

        Returns:
            Text content, unmodified when content is already a string
        """
        if content is None:
            return ""

        if isinstance(content, str):
            return content

        if isinstance(content, dict):
            return LLMResponseHandler._part_text(content)

        if isinstance(content, list):
            return "".join(LLMResponseHandler._part_text(part) for part in content)

        return str(content)

    @staticmethod
    def _part_text(part: Any) -> str:
        if isinstance(part, str):
            return part
        if not isinstance(part, dict):
            return ""

        part_type = part.get("type", "text")
        if part_type in LLMResponseHandler.EXCLUDED_PARTS:
            logger.debug(f"Skipping non-text content part: {part_type}")
            return ""

        text = part.get("text")
        return text if isinstance(text, str) else ""

    @staticmethod
    def strip_code_fences(text: str) -> str:
        """Remove a surrounding markdown code block (```json ... ```) if present"""
        stripped = text.strip()
        match = _FENCE_RE.match(stripped)
        if match:
            logger.info("Removed markdown code fence from LLM response")
            return match.group(1).strip()
        return stripped
