"""
Vision client backed by an OpenAI multimodal chat model through LangChain.
"""

import base64
import logging
from typing import Any, Dict, List, Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage

from trialops.core.errors import ExtractionError
from trialops.core.openai import get_vision_llm
from trialops.services.vision.interfaces.vision_client import IVisionClient
from trialops.services.vision.parsing import parse_json_object

logger = logging.getLogger(__name__)


def document_content_block(document: bytes, mime_type: str) -> Dict[str, Any]:
    """Images go in as ``image_url`` data URLs, everything else as an inline file."""
    data_url = f"data:{mime_type};base64,{base64.b64encode(document).decode('ascii')}"
    if mime_type.startswith("image/"):
        return {"type": "image_url", "image_url": {"url": data_url}}
    return {"type": "file", "file": {"filename": "report.pdf", "file_data": data_url}}


def message_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    parts: List[str] = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


class OpenAIVisionClient(IVisionClient):
    def __init__(self, llm: Optional[BaseChatModel] = None) -> None:
        self.llm = llm or get_vision_llm()

    async def extract(self, document: bytes, mime_type: str, prompt: str) -> Dict[str, Any]:
        if not document:
            raise ExtractionError("Document is empty")

        message = HumanMessage(
            content=[
                document_content_block(document, mime_type or "application/pdf"),
                {"type": "text", "text": prompt},
            ]
        )
        try:
            response = await self.llm.ainvoke([message])
        except Exception as e:
            logger.error("Vision model call failed: %s", e)
            raise ExtractionError("Vision model call failed") from e

        text = message_text(response.content).strip()
        try:
            return parse_json_object(text)
        except ExtractionError:
            logger.error("Vision model returned unparseable output: %.500s", text)
            raise
