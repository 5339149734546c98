"""Environment-based configuration for the document parser service."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Document parser settings, loaded from environment variables."""

    # Server
    PORT: int = 8091

    # Ollama server (empty = extraction endpoint disabled)
    OLLAMA_URL: str = "http://localhost:11434"

    # Models
    VISION_MODEL: str = "llama3.2-vision"
    TEXT_MODEL: str = "llama3.2"

    # Ollama timeouts and retry
    OLLAMA_TIMEOUT_SECONDS: int = 300  # 5 min (vision models are slow on CPU)
    OLLAMA_CONNECT_TIMEOUT: int = 30
    OLLAMA_RETRY_ATTEMPTS: int = 3
    OLLAMA_RETRY_DELAY: float = 2.0
    OLLAMA_RETRY_BACKOFF: float = 2.0

    model_config = {"env_prefix": "", "case_sensitive": True}


settings = Settings()
