from abc import ABC, abstractmethod
from typing import Any, Dict


class IVisionClient(ABC):
    @abstractmethod
    async def extract(self, document: bytes, mime_type: str, prompt: str) -> Dict[str, Any]:
        """Run ``prompt`` against a scanned report and return the JSON object the model produced.

        Raises ``ExtractionError`` when the model fails or answers with anything
        other than a JSON object.
        """
        pass
