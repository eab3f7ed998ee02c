import os
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from .errors import ConfigError


@dataclass
class Settings:
    blob_dir: Path = Path("images")
    database_url: str = "imgdb.sqlite"
    min_width: int = 500
    min_height: int = 500
    duplicate_threshold: float = 5e-3
    bins: Tuple[int, int, int] = (8, 8, 8)
    formats: Tuple[str, ...] = ("png", "jpeg")

    def __post_init__(self) -> None:
        # An image needs at least one pixel to have a histogram
        if self.min_width < 1 or self.min_height < 1:
            raise ConfigError(
                f"minimum dimensions must be at least 1, got {self.min_width}x{self.min_height}"
            )
        if not self.duplicate_threshold > 0:
            raise ConfigError(f"duplicate threshold must be positive, got {self.duplicate_threshold}")
        if len(self.bins) != 3 or any(n <= 0 for n in self.bins):
            raise ConfigError(f"expected three positive bin counts, got {self.bins}")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from IMGDB_* environment variables, falling back to defaults."""
        defaults = cls()
        try:
            min_width = int(os.getenv("IMGDB_MIN_WIDTH", defaults.min_width))
            min_height = int(os.getenv("IMGDB_MIN_HEIGHT", defaults.min_height))
            threshold = float(os.getenv("IMGDB_DUPLICATE_THRESHOLD", defaults.duplicate_threshold))
        except ValueError as exc:
            raise ConfigError(f"Invalid IMGDB_* environment value: {exc}") from exc

        return cls(
            blob_dir=Path(os.getenv("IMGDB_BLOB_DIR", str(defaults.blob_dir))),
            database_url=os.getenv("IMGDB_DATABASE_URL", defaults.database_url),
            min_width=min_width,
            min_height=min_height,
            duplicate_threshold=threshold,
        )
