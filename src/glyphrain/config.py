from dataclasses import dataclass

DEFAULT_CELL_SIZE = 12
DEFAULT_TARGET_FPS = 30


@dataclass(frozen=True)
class RenderConfig:
    cell_size: int = DEFAULT_CELL_SIZE
    mirrored: bool = False
    target_fps: int = DEFAULT_TARGET_FPS
    jpeg_quality: int = 90

    def __post_init__(self):
        if self.cell_size <= 0:
            raise ValueError(f"cell_size must be positive, got {self.cell_size}")
        if self.target_fps <= 0:
            raise ValueError(f"target_fps must be positive, got {self.target_fps}")
        if not 1 <= self.jpeg_quality <= 95:
            raise ValueError(f"jpeg_quality must be in 1..95, got {self.jpeg_quality}")
