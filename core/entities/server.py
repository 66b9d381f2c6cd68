from dataclasses import dataclass, field
from typing import Dict


SERVER_TYPES = ("discord-bot", "game-server", "web-app", "database")

# transient статус -> terminal статус после settle
TRANSITIONS = {
    "start": ("starting", "online"),
    "stop": ("stopping", "offline"),
    "restart": ("restarting", "online"),
}

# Ресурсы по тарифу
TIER_SPECS: Dict[str, Dict[str, str]] = {
    "free": {"ram": "512MB", "storage": "10GB", "cpu": "1 Core"},
    "premium": {"ram": "2GB", "storage": "50GB", "cpu": "2 Cores"},
    "enterprise": {"ram": "8GB", "storage": "200GB", "cpu": "4 Cores"},
}

SERVER_QUOTAS = {
    "free": 3,
    "premium": 10,
    "enterprise": 50,
}


@dataclass
class Server:
    id: str
    owner_id: str
    name: str
    type: str               # discord-bot | game-server | web-app | database
    runtime: str
    region: str
    created_at: str
    status: str = "offline"  # offline | starting | online | stopping | restarting
    specs: Dict[str, str] = field(default_factory=dict)
    version: int = 0        # растёт на каждый запрос start/stop/restart
