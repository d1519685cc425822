from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "MonsterVault"
    debug: bool = False

    database_url: str = "postgresql+asyncpg://localhost:5432/monstervault"

    # Crystals earned per tracked presence hour
    crystal_reward_rate: float = 1.0

    # Minimum wall-clock gap between two accrual attempts for one player
    crystal_accrual_cooldown_seconds: int = 3600

    # Conflict retry policy for atomic store steps
    transaction_max_attempts: int = 5
    transaction_backoff_seconds: float = 0.05

    # Monsters granted on first login
    welcome_monster_count: int = 1

    recent_gifts_limit: int = 10


settings = Settings()
