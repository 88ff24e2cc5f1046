from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Profile:
    id: int
    email: str
    name: Optional[str]
    created_at: Optional[datetime] = None
