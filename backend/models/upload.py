"""
Upload-related Pydantic models
"""

from pydantic import BaseModel
from typing import Dict, List, Literal, Optional, Any


class UploadResponse(BaseModel):
    """Response model for single image upload"""
    success: Literal[True] = True
    url: str
    size: int
    width: int
    height: int


class BatchUploadResponse(BaseModel):
    """Response model for batch image upload"""
    success: Literal[True] = True
    urls: Dict[str, str]
    total: int


class UploadErrorResponse(BaseModel):
    """Body returned for any failed upload"""
    success: Literal[False] = False
    error: str
    code: str
    details: Optional[Dict[str, Any]] = None
    timestamp: Optional[str] = None


class PresetInfo(BaseModel):
    """Public description of an aspect-ratio policy"""
    policy: str
    width: int
    height: int
    fit: str
    description: str


class PresetListResponse(BaseModel):
    presets: List[PresetInfo]
