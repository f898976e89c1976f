from abc import ABC, abstractmethod
from typing import List

from ..schema import Annotation


class OcrProvider(ABC):
    name: str = "base"

    @abstractmethod
    async def detect_text(self, image: bytes) -> List[Annotation]:
        """Return annotations for the image; element 0 is the whole-image summary."""
        ...
