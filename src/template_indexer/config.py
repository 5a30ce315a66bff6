from typing import Literal, Optional

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    openai_api_key: Optional[SecretStr] = None
    openai_base_url: str = "https://api.openai.com/v1/embeddings"
    embedding_model: str = "text-embedding-3-large"
    embedding_dimensions: int = 1024

    pinecone_api_key: Optional[SecretStr] = None
    index_name: str = Field(
        default="templatesdb",
        validation_alias=AliasChoices("index_name", "pinecone_index_name"),
    )
    pinecone_index_host: Optional[str] = None  # looked up from the controller when unset
    pinecone_controller_url: str = "https://api.pinecone.io"

    vector_backend: Literal["pinecone", "faiss"] = "pinecone"
    vector_index_path: str = "./data/faiss_index.bin"
    vector_meta_path: str = "./data/index_meta.json"

    # Delay between consecutive embedding requests of one upload
    upload_pacing_ms: int = 150
    request_timeout: float = 60.0

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

settings = Settings()
