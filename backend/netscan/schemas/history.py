"""
Pydantic schemas for speed-test history endpoints.
"""
from typing import Optional
from pydantic import BaseModel, Field


class SaveResultIn(BaseModel):
    """
    Request model for saving one speed-test result.
    Numeric ranges are checked here and again by the history store; the
    free-text fields are optional and get defaulted/truncated by the store.
    """
    downloadSpeed: float = Field(ge=0)  # Mbps
    uploadSpeed: float = Field(ge=0)  # Mbps
    ping: int = Field(ge=0)  # ms
    jitter: int = Field(ge=0)  # ms
    packetLoss: float = Field(ge=0, le=100)  # percent
    networkScore: int = Field(ge=0, le=100)  # 0-100
    networkType: Optional[str] = None  # e.g. "wifi", "4g"
    isp: Optional[str] = None
    ip: Optional[str] = None
    location: Optional[str] = None
