from pydantic_settings import BaseSettings


class BotSettings(BaseSettings):
    BOT_TOKEN: str
    API_URL: str = "http://localhost:3000"
    API_TIMEOUT_SEC: float = 10.0
    WS_RECONNECT_SEC: float = 3.0
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def ws_url(self) -> str:
        base = self.API_URL.rstrip("/")
        if base.startswith("http"):
            base = "ws" + base[len("http"):]
        return base + "/ws"


settings = BotSettings()
