from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class PageIn(BaseModel):
    id: str = Field(..., description="Stable destination id, e.g. 'products'")
    name: str = Field(..., description="Display name")
    path: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    description: Optional[str] = None


class AnalyzeRequest(BaseModel):
    # Optional so that a missing value is a 400 from the handler, not a 422
    text: Optional[str] = None
    pages: Optional[List[PageIn]] = None
    currentPageId: Optional[str] = None


class AnalyzeResponse(BaseModel):
    success: bool = True
    hasMatch: bool = False
    intentType: str = "none"
    matchedPage: Optional[Dict[str, Any]] = None
    listAction: Optional[Dict[str, Any]] = None
    formAction: Optional[Dict[str, Any]] = None


class TranscribeResponse(BaseModel):
    success: bool = True
    transcript: str = ""


class StatusResponse(BaseModel):
    status: str = "OK"
    message: str = ""
