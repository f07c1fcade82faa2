from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    APP_ENV: str = "development"
    SERVER_PORT: int = 8080

    # Database
    DATABASE_URL: str
    # Optional credentials, merged into DATABASE_URL when set
    DATABASE_USER: str = ""
    DATABASE_PASSWORD: str = ""

    # LLM (OpenAI-compatible chat completions, e.g. Ollama /v1 or OpenAI)
    LLM_ENDPOINT: str = "http://localhost:11434/v1"
    LLM_API_KEY: str = ""
    LLM_MODEL: str = "llama3.1"
    LLM_TIMEOUT_SECONDS: float = 60.0
    CHAT_MAX_ITERATIONS: int = Field(8, ge=5)

    # Embeddings
    EMBEDDING_PROVIDER: str = "local"
    EMBEDDING_ENDPOINT: str = "https://api.openai.com/v1"
    EMBEDDING_API_KEY: str = ""
    EMBEDDING_MODEL: str = "all-MiniLM-L6-v2"
    EMBEDDING_DIM: int = 384

    # Startup
    BACKFILL_ON_STARTUP: bool = True

    @property
    def database_url(self) -> str:
        url = make_url(self.DATABASE_URL)
        if self.DATABASE_USER:
            url = url.set(username=self.DATABASE_USER)
        if self.DATABASE_PASSWORD:
            url = url.set(password=self.DATABASE_PASSWORD)
        return url.render_as_string(hide_password=False)


settings = Settings()
