from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    jwt_secret: str = Field(alias="JWT_SECRET")
    jwt_expires_minutes: int = Field(default=60 * 24 * 7, alias="JWT_EXPIRES_MINUTES")

    db_path: str = Field(default="./wartek.db", alias="DB_PATH")
    database_url: str | None = Field(default=None, alias="DATABASE_URL")

    # Comma separated list of frontend origins
    allowed_origins: str = Field(default="http://localhost:5173", alias="ALLOWED_ORIGINS")

    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    openai_base_url: str | None = Field(default=None, alias="OPENAI_BASE_URL")
    ai_model: str = Field(default="gpt-4o-mini", alias="AI_MODEL")
    ai_timeout_seconds: int = Field(default=30, alias="AI_TIMEOUT_SECONDS")

    news_api_key: str | None = Field(default=None, alias="NEWSAPI_AI_KEY")
    news_api_url: str = Field(
        default="https://eventregistry.org/api/v1/article/getArticles", alias="NEWSAPI_AI_URL"
    )
    news_timeout_seconds: int = Field(default=10, alias="NEWS_TIMEOUT_SECONDS")
    user_agent: str = Field(default="WarTekBot/1.0", alias="USER_AGENT")

    google_client_id: str | None = Field(default=None, alias="GOOGLE_CLIENT_ID")

    timeline_page_size: int = Field(default=10, alias="TIMELINE_PAGE_SIZE")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

settings = Settings()
