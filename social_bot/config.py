from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./social_bot.db"
    debug: bool = False
    log_level: str = "INFO"

    # Meta webhook + Graph send API
    webhook_verify_token: str = ""
    page_tokens: dict[str, str] = {}
    graph_api_base_url: str = "https://graph.facebook.com"
    graph_api_version: str = "v19.0"
    platform_timeout_seconds: float = 30.0
    fetch_customer_names: bool = False

    # Groq (OpenAI-compatible chat completions)
    groq_api_key: str = ""
    groq_base_url: str = "https://api.groq.com/openai/v1"
    ai_model: str = "llama-3.3-70b-versatile"
    ai_temperature: float = 0.3
    ai_max_tokens: int = 120
    ai_timeout_seconds: float = 30.0

    products_path: str = "products.xlsx"

    # Manual media replies
    public_base_url: str = ""
    upload_dir: str = "uploads"
    max_upload_bytes: int = 6 * 1024 * 1024
    max_upload_files: int = 10

    cors_allow_origins: str = "*"

    alert_bot_token: str = ""
    alert_chat_id: str = ""

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
