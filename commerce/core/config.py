from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="COMMERCE_", extra="ignore")

    app_name: str = "Commerce Lifecycle Engine"
    env: str = "dev"
    log_level: str = "INFO"

    database_url: str = "sqlite+pysqlite:///./commerce.db"
    test_database_url: str = "sqlite+pysqlite:///:memory:"

    payment_success_ratio: float = Field(
        default=0.95,
        ge=0.0,
        le=1.0,
        description="Share of payment attempts the simulated settlement accepts",
    )
    payment_outcome_seed: int | None = Field(
        default=None,
        description="Seed for the simulated settlement; reproducible outcomes in dev/test",
    )

    def model_post_init(self, __context) -> None:
        if self.env.lower() == "dev":
            return

        if self.payment_outcome_seed is not None:
            raise ValueError(
                "a fixed payment outcome seed is not allowed outside dev mode; unset COMMERCE_PAYMENT_OUTCOME_SEED"
            )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
