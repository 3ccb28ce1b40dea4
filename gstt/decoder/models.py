from typing import List, Optional
from pydantic import BaseModel


class RecognitionAlternative(BaseModel):
    transcript: str = ""
    confidence: Optional[float] = None


class RecognitionResult(BaseModel):
    alternative: List[RecognitionAlternative] = []
    final: bool = False
    stability: Optional[float] = None


class RecognitionResponse(BaseModel):
    result: List[RecognitionResult] = []
    result_index: Optional[int] = None
