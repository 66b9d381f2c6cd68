from dataclasses import dataclass


@dataclass
class BillingEvent:
    id: str
    user_id: str
    type: str               # "upgrade"
    plan: str
    coins_after: int
    created_at: str
