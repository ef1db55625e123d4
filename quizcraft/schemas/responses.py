"""Response schemas shared across routers."""

from typing import Any, Dict, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    message: str
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    store: Dict[str, Any]
    llm_configured: bool
