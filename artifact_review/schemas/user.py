from pydantic import BaseModel


class UserOut(BaseModel):
    user_id: str
    name: str | None = None
    email: str | None = None
    username: str | None = None
    is_anonymous: bool = False
