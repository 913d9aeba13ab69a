from pydantic import BaseModel


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"

    @classmethod
    def from_pair(cls, tokens: dict[str, str]) -> "TokenResponse":
        return cls(access_token=tokens["access"], refresh_token=tokens["refresh"])
