from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import SecretStr


class Settings(BaseSettings):
    app_name: str = "snippet-hub"
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./snippets.db"
    database_echo: bool = False
    create_schema: bool = True  # create missing tables at startup

    # Identity tokens issued by the auth provider
    auth_jwt_secret: SecretStr = SecretStr("")
    auth_jwt_algo: str = "HS256"
    auth_jwt_issuer: str = "snippet-hub-auth"
    auth_jwt_audience: str = "snippet-hub"
    auth_token_ttl: int = 3600  # seconds

    # Cookie bridging the identity token into server-rendered requests
    session_cookie_name: str = "__session"
    session_cookie_max_age: int = 60 * 60 * 24 * 5
    session_cookie_secure: bool = True

    openai_api_key: SecretStr = SecretStr("")
    explain_model: str = "gpt-4o-mini"
    llm_api_url: str = "https://api.openai.com/v1/chat/completions"
    llm_timeout: float = 60.0

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

settings = Settings()
