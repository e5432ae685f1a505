from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True, slots=True)
class TrackGain:
    """Результат анализа одного файла."""

    path: str
    sample_rate: int
    channels: int
    frames: int
    gain_db: Optional[float]
    peak: float

    def __post_init__(self) -> None:
        if not self.path:
            raise ValueError("path должен быть непустой строкой")
        if self.sample_rate <= 0:
            raise ValueError("sample_rate должен быть положительным")
        if self.channels not in (1, 2):
            raise ValueError("channels должен быть 1 или 2")
        if self.frames < 0:
            raise ValueError("frames должен быть неотрицательным")
        if self.peak < 0:
            raise ValueError("peak должен быть неотрицательным")

    @property
    def duration_seconds(self) -> float:
        return self.frames / self.sample_rate

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "sample_rate": self.sample_rate,
            "channels": self.channels,
            "frames": self.frames,
            "gain_db": self.gain_db,
            "peak": self.peak,
        }


@dataclass(frozen=True, slots=True)
class AlbumGain:
    """Результат анализа альбома: треки в порядке анализа и общий gain."""

    tracks: List[TrackGain] = field(default_factory=list)
    gain_db: Optional[float] = None
    peak: float = 0.0

    def __post_init__(self) -> None:
        if not isinstance(self.tracks, list):
            raise TypeError("tracks должен быть списком объектов TrackGain")
        for track in self.tracks:
            if not isinstance(track, TrackGain):
                raise TypeError("каждый элемент tracks должен быть экземпляром TrackGain")
        if self.peak < 0:
            raise ValueError("peak должен быть неотрицательным")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gain_db": self.gain_db,
            "peak": self.peak,
            "tracks": [track.to_dict() for track in self.tracks],
        }
