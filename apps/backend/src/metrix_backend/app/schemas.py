"""Response schemas for the collector API."""

from __future__ import annotations
from typing import Literal
from pydantic import BaseModel


class BatchAck(BaseModel):
    """Acknowledgement returned for an applied batch of metrics."""

    status: Literal["ok"] = "ok"


__all__ = ["BatchAck"]
