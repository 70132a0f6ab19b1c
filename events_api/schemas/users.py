from events_api.schemas.base import CamelModel


class UserCreate(CamelModel):
    name: str
    email: str


class UserOut(CamelModel):
    id: int
    name: str
    email: str
