from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    data_dir: Path = Path.home() / ".ssatprep" / "data"
    sqlite_filename: str = "ssatprep.db"
    default_user_id: str = "demo-user-123"  # stands in for an authenticated session
    default_review_limit: int = 20
    llm_base_url: str = "http://localhost:11434"
    llm_model: str = ""  # empty = no LLM, question generation uses the local fallback
    llm_timeout_seconds: float = 12.0

    model_config = {"env_prefix": "SSATPREP_"}


settings = Settings()
