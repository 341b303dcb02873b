from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "Release Notes Generator"
    debug: bool = False

    # Defect tracker
    tracker_base_url: str = "https://bugs.example.com"
    tracker_api_version: str = "v3"
    tracker_token_env_var: str = "TRACKER_AUTH_TOKEN"
    tracker_token_file: str = "~/.local/state/artools_oauth2"
    tracker_timeout: int = 30  # Seconds per HTTP request
    tracker_max_retries: int = 3
    tracker_commit_user: str = ""  # Bot account that posts commit comments; empty = all
    review_url_prefixes: List[str] = ["https://", "http://"]

    # LLM provider: "gen-ai-hub" (SAP proxy) or "vertexai" (Gemini, needs the vertexai extra)
    llm_provider: str = "gen-ai-hub"
    proxy_model: str = "gpt-4o"  # Model name when going through gen_ai_hub
    gcp_project_id: str = ""
    gcp_location: str = "us-central1"
    gemini_model: str = "gemini-2.5-pro"

    # Generation parameters
    temperature: float = 0.7
    top_p: float = 0.95
    top_k: int = 40
    max_output_tokens: int = 4096
    generation_timeout: int = 60  # Seconds per model call
    generation_max_retries: int = 3

    # Learning loop
    example_limit: int = 3  # Few-shot examples per prompt
    extraction_workers: int = 2
    extraction_queue_size: int = 100

    model_config = ConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
