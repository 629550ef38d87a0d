from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any


# Session log records
class SessionMessage(BaseModel):
    role: str = ""
    # Plain string or a list of typed blocks ({"type": "text", "text": ...})
    content: Any = None
    tool_calls: Optional[List[Any]] = None


class RawRecord(BaseModel):
    type: str = ""
    message: Optional[SessionMessage] = None

    model_config = {"frozen": True, "extra": "ignore"}


# Generation
class ReflectorConfig(BaseModel):
    summaryModel: str
    slugModel: str
    fallbackModels: List[str] = []
    maxChars: int = 80000
    timeoutMs: int = 60000


# Output
class SummaryDocument(BaseModel):
    date: str
    session: str
    slug: str
    body: str

    model_config = {"frozen": True}

    def render(self) -> str:
        return (
            "---\n"
            f"date: {self.date}\n"
            f"session: {self.session}\n"
            f"slug: {self.slug}\n"
            "---\n"
            "\n"
            f"{self.body}\n"
        )


# Hook endpoint
class SessionEndRequest(BaseModel):
    type: str
    action: str
    sessionFile: Optional[str] = None
    sessionId: Optional[str] = None
    agentId: Optional[str] = None
    env: Dict[str, str] = {}


class SessionEndResponse(BaseModel):
    status: str = Field(..., pattern="^(scheduled|skipped|ignored)$")
    reason: Optional[str] = None
    sessionFile: Optional[str] = None
