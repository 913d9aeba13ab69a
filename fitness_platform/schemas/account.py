from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class AccountRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    phone: str
    first_name: str
    last_name: str
    full_name: str
    is_active: bool
    gym_owner_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
