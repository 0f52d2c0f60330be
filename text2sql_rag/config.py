from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
    
    # LLM Configuration
    llm_model_name: str = Field(default="qwen2.5-coder:32b")
    llm_base_url: str = Field(default="http://localhost:11434")
    llm_temperature: float = Field(default=0.0)
    llm_max_tokens: int = Field(default=2048)
    llm_timeout: int = Field(default=120)
    
    # Embedding Model Configuration
    embedding_model_name: str = Field(default="BAAI/bge-large-en-v1.5")
    embedding_device: str = Field(default="cpu")
    
    # Vector Database Configuration
    vector_db_path: str = Field(default="./chroma_db")
    table_index_name: str = Field(default="table_index")
    query_index_name: str = Field(default="query_intents")
    
    # Database Configuration (PostgreSQL)
    db_host: str = Field(default="localhost")
    db_port: int = Field(default=5432)
    db_user: str = Field(default="postgres")
    db_password: str = Field(default="")
    db_name: str = Field(default="target_db")
    db_schema: str = Field(default="public")
    db_pool_size: int = Field(default=5)
    db_url: Optional[str] = Field(default=None)
    
    # Generation Configuration
    sql_dialect: str = Field(default="PostgreSQL")
    table_top_k: int = Field(default=5)
    query_top_k: int = Field(default=3)
    sql_timeout: int = Field(default=30)
    
    # Sync Configuration
    table_metadata_path: str = Field(default="./content/table-standard.json")
    query_log_limit: int = Field(default=100)
    
    @property
    def database_url(self) -> str:
        """Construct database URL from components."""
        if self.db_url:
            return self.db_url
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )


# Global settings instance
settings = Settings()
