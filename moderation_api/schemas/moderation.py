import enum
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class Severity(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys, e.g. ``isProblematic``."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


# ---- Requests ----
class ModerationRequest(CamelModel):
    content: str
    user_id: Optional[str] = None
    platform: Optional[str] = None

    class Config:
        frozen = True


class BatchModerationRequest(CamelModel):
    contents: List[ModerationRequest]


# ---- Pipeline data ----
class Classification(CamelModel):
    """Raw classifier output, before business rules are applied.

    ``severity`` is kept as a plain string: it comes from the AI backend and
    is not validated against :class:`Severity`.
    """

    is_problematic: bool = False
    confidence: float = 0.0
    categories: List[str] = Field(default_factory=list)
    reasoning: str = ""
    severity: str = Severity.low.value


class ModerationVerdict(Classification):
    recommendations: List[str] = Field(default_factory=list)


class Category(CamelModel):
    name: str
    description: str
    severity: Severity

    class Config:
        frozen = True
        use_enum_values = True


# ---- Responses ----
class ModerationResponse(CamelModel):
    success: bool = True
    data: ModerationVerdict
    timestamp: datetime


class BatchItemResult(CamelModel):
    index: int
    success: bool
    data: Optional[ModerationVerdict] = None
    error: Optional[str] = None


class BatchSummary(CamelModel):
    total: int
    successful: int
    failed: int


class BatchModerationResponse(CamelModel):
    success: bool = True
    data: List[BatchItemResult]
    summary: BatchSummary
    timestamp: datetime


class CategoriesResponse(CamelModel):
    success: bool = True
    data: List[Category]
    timestamp: datetime
