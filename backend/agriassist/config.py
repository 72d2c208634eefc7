from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Supabase (PostgREST + auth), anon key only
    supabase_url: str = ""
    supabase_anon_key: str = ""
    # Direct Postgres connection, only used to bootstrap the schema
    database_url: str = ""
    openai_api_key: str = ""
    # Alternative OpenAI-compatible or Hugging Face provider
    ai_api_key: str = ""
    ai_base_url: str = ""
    ai_provider: str = ""
    ai_fallback_model: str = ""
    weather_api_url: str = "https://afrigis.services/weather-10-day-forecast/v1/getHourlyByCoords"
    default_latitude: float = -25.81606774487145
    default_longitude: float = 28.24244434919649
    log_level: str = "INFO"
    log_json: bool = False
    log_access: bool = True

    class Config:
        env_file = ".env"


settings = Settings()
