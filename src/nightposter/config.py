"""Environment-driven settings.

Call load_dotenv() in the entry point before load_settings().
"""

import os
from dataclasses import dataclass
from pathlib import Path

_ROOT = Path(__file__).parent.parent.parent


@dataclass(frozen=True)
class Settings:
    output_dir: Path  # Where exported posters are written
    dpi: int  # Default export resolution for physical sizes
    log_level: str


def load_settings() -> Settings:
    """Read NIGHTPOSTER_* variables from the environment.

    Raises:
        ValueError: If NIGHTPOSTER_DPI is not a positive integer.
    """
    output_dir = Path(os.environ.get("NIGHTPOSTER_OUTPUT_DIR", "results"))
    if not output_dir.is_absolute():
        output_dir = _ROOT / output_dir

    dpi = int(os.environ.get("NIGHTPOSTER_DPI", "300"))
    if dpi <= 0:
        raise ValueError(f"NIGHTPOSTER_DPI must be positive, got {dpi}")

    return Settings(
        output_dir=output_dir,
        dpi=dpi,
        log_level=os.environ.get("NIGHTPOSTER_LOG_LEVEL", "INFO").upper(),
    )
