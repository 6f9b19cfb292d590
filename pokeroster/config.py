from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "PokeRoster"
    debug: bool = False

    database_url: str = "sqlite+aiosqlite:///./pokeroster.db"

    pokeapi_url: str = "https://pokeapi.co/api/v2"
    import_page_size: int = 20

    max_team_size: int = 6
    default_team_name: str = "New Team"


settings = Settings()
