from dataclasses import dataclass, field
from typing import Optional, Dict, Any


PLANS = ("free", "premium", "enterprise")
PAID_PLANS = ("premium", "enterprise")


@dataclass
class User:
    id: str
    username: str
    email: str
    password_hash: str
    created_at: str
    plan: str = "free"  # free | premium | enterprise
    coins: int = 0
    avatar: str = ""
    last_login: Optional[str] = None
    settings: Dict[str, Any] = field(default_factory=dict)
