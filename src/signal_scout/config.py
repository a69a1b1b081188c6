from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Elasticsearch
    elastic_url: str = "http://localhost:9200"
    elastic_cloud_id: str = ""
    elastic_api_key: str = ""
    signals_index: str = "social_signals"
    embedding_dims: int = 768
    bulk_chunk_size: int = 500

    # Google Vertex AI (embeddings + reranking)
    google_cloud_project_id: str = ""
    google_cloud_location: str = "us-central1"
    google_application_credentials: str = ""
    embedding_model: str = "text-embedding-004"
    embedding_batch_size: int = 5
    embedding_batch_delay_secs: float = 2.0
    reranker_inference_id: str = "vertex_ai_reranker"
    reranker_model_id: str = "semantic-ranker-512@latest"

    # Reddit
    reddit_client_id: str = ""
    reddit_client_secret: str = ""
    reddit_user_agent: str = "signal_scout/0.1"
    reddit_subreddits: list[str] = [
        "startups",
        "Entrepreneur",
        "SaaS",
        "smallbusiness",
        "sidehustle",
        "buildinpublic",
    ]
    reddit_rate_limit_secs: float = 1.0

    # Product Hunt
    producthunt_api_token: str = ""

    # YouTube via Bright Data
    bright_data_api_token: str = ""
    bright_data_youtube_dataset_id: str = ""
    bright_data_poll_attempts: int = 30
    bright_data_poll_delay_secs: float = 2.0

    # Collection
    enabled_platforms: list[str] = ["youtube", "reddit", "hackernews", "producthunt"]
    queue_threshold: int = 10
    query_delay_secs: float = 1.0
    immediate_quotas: dict[str, int] = {
        "youtube": 10,
        "reddit": 15,
        "hackernews": 15,
        "producthunt": 10,
    }
    batch_quotas: dict[str, int] = {
        "youtube": 5,
        "reddit": 10,
        "hackernews": 10,
        "producthunt": 5,
    }

    # Filtering
    min_quality_score: float = 40.0

    # Scheduling
    trending_interval_hours: int = 6
    trending_limit: int = 25
    retention_days: int = 90
    prune_interval_hours: int = 24

    # App
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    log_level: str = "INFO"
    base_dir: Path = Path(__file__).resolve().parent.parent.parent


settings = Settings()
