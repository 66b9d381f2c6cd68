from dataclasses import dataclass


@dataclass
class Database:
    id: str
    owner_id: str
    name: str
    engine: str
    created_at: str
    status: str = "offline"
