from pydantic import ConfigDict

from app.schemas.base import CamelModel


class User(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: str
    email: str
    is_active: bool
