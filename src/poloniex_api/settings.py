from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, SecretStr


class ProxySettings(BaseModel):
    enabled: bool = False
    url: str | None = None
    username: str | None = None
    password: SecretStr | None = None

    model_config = {"extra": "forbid"}


class ApiCredentials(BaseModel):
    api_key: SecretStr
    api_secret: SecretStr

    model_config = {"extra": "forbid"}


class Settings(BaseModel):
    public_url: str = "https://poloniex.com/public"
    private_url: str = "https://poloniex.com/tradingApi"
    user_agent: str = "poloniex-api"
    timeout_seconds: float = Field(default=30.0, gt=0)
    credentials: ApiCredentials | None = None
    proxy: ProxySettings = Field(default_factory=ProxySettings)

    model_config = {"extra": "forbid"}

    def redacted(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        creds = data.get("credentials")
        if isinstance(creds, dict):
            if "api_key" in creds:
                creds["api_key"] = "***"
            if "api_secret" in creds:
                creds["api_secret"] = "***"
        proxy = data.get("proxy")
        if isinstance(proxy, dict) and proxy.get("password") is not None:
            proxy["password"] = "***"
        return data
