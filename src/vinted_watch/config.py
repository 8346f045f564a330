from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Server
    host: str = "127.0.0.1"
    port: int = 8001

    database_url: str = "sqlite:///./vinted_watch.db"

    # Listing source
    vinted_base_url: str = "https://www.vinted.nl"
    scraper_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/131.0.0.0 Safari/537.36"
    )
    scraper_request_timeout: int = 30
    scraper_use_html_fallback: bool = False

    # Sweeps
    sweep_interval_seconds: int = 300
    check_delay_seconds: float = 2.0
    check_page_size: int = 15
    check_enforce_price_bounds: bool = False  # off: filtering belongs to the query

    # Webhook
    webhook_url: str = ""
    webhook_type: str = "discord"  # discord / slack / generic

    # Auth
    api_key: str = ""  # Set to enable API key auth; empty = no auth

    # Log
    log_level: str = "INFO"

    # Dev server
    reload: bool = False  # uvicorn auto-reload for local development

    @property
    def page_size(self) -> int:
        """check_page_size clamped to what the catalog endpoint accepts."""
        return max(1, min(self.check_page_size, 96))

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
