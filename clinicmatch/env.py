import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

TRUTHY = {"1", "true", "yes", "y", "on"}


def load_env() -> None:
    """Load .env from the working directory if present."""
    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path)


def env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in TRUTHY


@dataclass(frozen=True)
class Settings:
    """Process-level settings gathered from the environment."""
    db_path: Path
    variant: str
    dry_run: bool
    log_level: str
    log_dir: Optional[Path]

    @classmethod
    def from_env(cls) -> "Settings":
        log_dir = os.getenv("CLINICMATCH_LOG_DIR")
        return cls(
            db_path=Path(os.getenv("CLINICMATCH_DB", "data/clinicmatch.db")),
            variant=os.getenv("CLINICMATCH_VARIANT", "soc"),
            dry_run=env_flag("CLINICMATCH_DRY_RUN"),
            log_level=os.getenv("CLINICMATCH_LOG_LEVEL", "INFO"),
            log_dir=Path(log_dir) if log_dir else None,
        )
