import os
from enum import Enum
from typing import List, Dict, Any, Tuple

from pydantic import BaseModel, ConfigDict, Field

# Callers may cap input size; the engine itself has no limit.
MAX_INPUT_CHARS = int(os.getenv("MAX_INPUT_CHARS", "10000"))


class Status(str, Enum):
    SAFE = "Safe"
    SUSPICIOUS = "Suspicious"
    DANGEROUS = "Dangerous"


class AnalysisResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Status
    risk_score: int = Field(ge=0, le=100)
    indicators: Tuple[str, ...] = ()


class IndicatorHit(BaseModel):
    label: str
    evidence: Dict[str, Any] = Field(default_factory=dict)


class AnalyzeRequest(BaseModel):
    text: str = Field(default="", max_length=MAX_INPUT_CHARS)
    url: str = Field(default="", max_length=MAX_INPUT_CHARS)


class AnalyzeResponse(BaseModel):
    status: Status
    risk_score: int
    indicators: List[str]
    hits: List[IndicatorHit]
    matched_keywords: List[str]
    summary: str
