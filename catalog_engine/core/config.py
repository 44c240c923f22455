from functools import lru_cache
from typing import Literal
import os
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["development", "production"]

def _env_file_for(app_env: EnvName) -> str:
    return ".env.development" if app_env == "development" else ".env.production"

class Settings(BaseSettings):

    # Core
    APP_ENV: EnvName = "development"
    APP_NAME: str = "EquipmentCatalogEngine"
    DEBUG: bool = False

    # Prefix index
    min_keyword_length: int = 4               # shorter words only reachable via the full name
    default_prefix_limit: int = 10

    # Ranking
    default_result_limit: int = 5
    popular_default_rating: float = 3.0       # substituted when an item has no rating
    popular_default_rental_count: int = 1     # substituted when an item has no rental count

    # Budget optimizer
    knapsack_value_scale: int = 100
    knapsack_unavailable_bonus: float = 0.5
    knapsack_full_table_max_budget: int = 10_000   # above this, single-row DP + taken bitmap

    # Distance
    earth_radius_km: float = 6371.0
    graph_edge_threshold_km: float = 50.0

    # Scheduling
    trailing_slot_score: float = 80.0

    # pydantic-settings config will be set dynamically in the factory below
    model_config = SettingsConfigDict(env_file=None, case_sensitive=True)

@lru_cache
def get_settings() -> Settings:
    """
    Factory that chooses the right .env file based on APP_ENV.
    Cached so every query path reads the same instance.
    """
    app_env: EnvName = os.getenv("APP_ENV", "development")  # earliest switch
    env_file = _env_file_for(app_env)
    return Settings(
                _env_file=env_file,  # load .env.development or .env.production
                _env_file_encoding="utf-8"
    )
