"""
Shapes of the external ban-list document.
"""

from pydantic import BaseModel
from typing import Any, Dict, List, Optional, Union


class BanEntry(BaseModel):
    target_id: Union[int, float]
    reporter_id: Union[int, float]
    reason: str
    context: str
    date_added: str
    report_id: str


class BanListDocument(BaseModel):
    # Entries already in the document are kept as written, even if another tool added extra keys
    banned_users: List[Dict[str, Any]] = []
    last_updated: Optional[str] = None
