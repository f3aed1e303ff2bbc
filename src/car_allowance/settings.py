"""Runtime settings, read from CAR_ALLOWANCE_* environment variables or a .env file."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from car_allowance.data.rates import CURRENT_TAX_YEAR, HISTORY_MAX_ENTRIES


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CAR_ALLOWANCE_", env_file=".env")

    data_dir: Path = Path.home() / ".car_allowance"
    log_level: str = "WARNING"
    tax_year: int = CURRENT_TAX_YEAR
    history_limit: int = HISTORY_MAX_ENTRIES

    @property
    def history_path(self) -> Path:
        return self.data_dir / "history.json"

    @property
    def scenarios_path(self) -> Path:
        return self.data_dir / "scenarios.json"
