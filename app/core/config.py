from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    database_url: str
    database_echo: bool = False
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    log_level: str = "INFO"

    # Listing
    listing_page_size: int = 12
    listing_max_page_size: int = 100
    activity_window_days: int = 30

    # Slugs
    slug_max_attempts: int = 10
    slug_suffix_length: int = 8

    model_config = {"env_file": ".env", "extra": "ignore"}

settings = Settings()
