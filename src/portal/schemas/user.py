from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr


class UserRead(BaseModel):
    id: UUID
    email: EmailStr
    name: str
    role: str
    sub_role: str | None
    consultancy_id: UUID | None
    created_at: datetime

    model_config = {"from_attributes": True}
