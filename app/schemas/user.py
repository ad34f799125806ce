from datetime import datetime

from pydantic import BaseModel


class UserOut(BaseModel):
    id: str
    email: str
    first_name: str | None
    last_name: str | None
    shop: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
