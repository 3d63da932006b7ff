"""
Estoque - Checklist request schemas
"""
from typing import Optional

from .base import ApiModel


class ExecutionItemUpdate(ApiModel):
    is_completed: bool
    notes: Optional[str] = None


class ExecutionComplete(ApiModel):
    notes: Optional[str] = None
