"""Control plane schemas"""
from typing import Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    cycle_running: bool
    shutting_down: bool


class TriggerResponse(BaseModel):
    status: str
    message: Optional[str] = None
