from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class DetectionBatchEvent(BaseModel):
    event_type: str = "detections"
    session_id: str
    timestamp_ms: int
    language_code: str
    detections: List[Dict[str, Any]]
    total_accumulated: int


class SessionStatusEvent(BaseModel):
    event_type: str = "session_status"
    session_id: str
    timestamp_ms: int
    state: str
    status: str
    message: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
