from pydantic import BaseModel


class StatusResponse(BaseModel):
    name: str
    authenticated: bool
