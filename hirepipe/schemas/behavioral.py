from typing import Any, Optional

from pydantic import BaseModel


class SignalIn(BaseModel):
    signal_type: Optional[Any] = None
    data: Optional[Any] = None
    session_id: Optional[Any] = None


class SignalBatchIn(BaseModel):
    signals: Optional[Any] = None


class SignalRecorded(BaseModel):
    signal_id: str
    signal_type: str
    total_signals: int


class SignalBatchRecorded(BaseModel):
    inserted: int
    signal_ids: list[str]
