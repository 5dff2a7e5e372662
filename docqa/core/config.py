from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Answer generation (OpenAI)
    openai_api_key: Optional[str] = Field(None, alias="OPENAI_API_KEY")
    llm_model: str = Field("gpt-4o-mini", alias="LLM_MODEL")
    llm_temperature: float = Field(0.2, alias="LLM_TEMPERATURE")
    llm_max_output_tokens: int = Field(700, alias="LLM_MAX_OUTPUT_TOKENS")
    llm_max_attempts: int = Field(2, alias="LLM_MAX_ATTEMPTS")
    llm_max_backoff_seconds: float = Field(5.0, alias="LLM_MAX_BACKOFF_SECONDS")
    model_cache_ttl_seconds: int = Field(600, alias="MODEL_CACHE_TTL_SECONDS")

    # Document store
    database_url: str = Field("sqlite:///data/docqa.db", alias="DATABASE_URL")

    # Chunking (characters)
    chunk_size: int = Field(1000, alias="CHUNK_SIZE")
    chunk_overlap: int = Field(100, alias="CHUNK_OVERLAP")

    # Retrieval parameters
    default_top_k: int = Field(5, alias="DEFAULT_TOP_K")
    default_doc_limit: int = Field(5, alias="DEFAULT_DOC_LIMIT")
    max_top_k: int = Field(10, alias="MAX_TOP_K")
    max_doc_limit: int = Field(25, alias="MAX_DOC_LIMIT")
    retrieval_workers: int = Field(1, alias="RETRIEVAL_WORKERS")

    # Citations
    max_citations: int = Field(3, alias="MAX_CITATIONS")

    log_level: str = Field("INFO", alias="LOG_LEVEL")


settings = Settings()
