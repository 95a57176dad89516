"""
Timeline serialization.

Exports a simulation run (a sequence of FramePayloads) as a JSON
timeline of per-frame counts and cue events, optionally with arc
geometry, or as a compressed NumPy archive of the spark arrays.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence, Union

import numpy as np

from teslacoil.config import color_to_hex
from teslacoil.core.arcs import CUE_GROUND_STRIKE
from teslacoil.simulation import FramePayload


@dataclass
class TimelineMetadata:
    """Header for an exported timeline."""

    fps: int
    duration: float
    n_frames: int
    n_arcs_created: int
    n_ground_strikes: int
    schema_version: str = "1.0"


class TimelineExporter:
    """Exports simulation payloads to JSON or NumPy."""

    def __init__(self, precision: int = 4):
        """
        Initialize the exporter.

        Args:
            precision: Decimal places for floating point values.
        """
        self.precision = precision

    def _round(self, value: float) -> float:
        return round(float(value), self.precision)

    def _build_frame(self, payload: FramePayload, include_geometry: bool) -> dict[str, Any]:
        frame: dict[str, Any] = {
            "frame_index": payload.frame_index,
            "time": self._round(payload.time),
            "active_arcs": len(payload.arcs),
            "active_sparks": int(np.count_nonzero(payload.spark_alive)),
            "cues": [
                {
                    "time": self._round(cue.time),
                    "intensity": self._round(cue.intensity),
                    "kind": cue.kind,
                }
                for cue in payload.cues
            ],
        }
        if include_geometry:
            frame["arcs"] = [
                {
                    "color": color_to_hex(arc.color),
                    "opacity": self._round(arc.opacity),
                    "thickness": self._round(arc.thickness),
                    "points": [
                        [self._round(v) for v in point] for point in arc.points
                    ],
                }
                for arc in payload.arcs
            ]
        return frame

    def build_timeline(
        self,
        payloads: Sequence[FramePayload],
        fps: int,
        include_geometry: bool = False,
    ) -> dict[str, Any]:
        """
        Build the complete timeline dictionary.

        Args:
            payloads: Frames in simulation order.
            fps: Frame rate the run was simulated at.
            include_geometry: Whether to embed arc point lists.

        Returns:
            Timeline dictionary ready for serialization.
        """
        n_strikes = sum(
            1 for p in payloads for cue in p.cues if cue.kind == CUE_GROUND_STRIKE
        )
        metadata = TimelineMetadata(
            fps=fps,
            duration=self._round(payloads[-1].time if payloads else 0.0),
            n_frames=len(payloads),
            n_arcs_created=sum(p.arcs_created for p in payloads),
            n_ground_strikes=n_strikes,
        )

        return {
            "metadata": {
                "fps": metadata.fps,
                "duration": metadata.duration,
                "n_frames": metadata.n_frames,
                "n_arcs_created": metadata.n_arcs_created,
                "n_ground_strikes": metadata.n_ground_strikes,
                "schema_version": metadata.schema_version,
            },
            "frames": [self._build_frame(p, include_geometry) for p in payloads],
        }

    def to_dict(
        self,
        payloads: Sequence[FramePayload],
        fps: int,
        include_geometry: bool = False,
    ) -> dict[str, Any]:
        return self.build_timeline(payloads, fps, include_geometry)

    def export_json(
        self,
        payloads: Sequence[FramePayload],
        fps: int,
        output_path: Union[str, Path],
        include_geometry: bool = False,
        indent: int = 2,
    ) -> Path:
        """Write the timeline to a JSON file and return its path."""
        timeline = self.build_timeline(payloads, fps, include_geometry)
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(timeline, f, indent=indent)

        return output_path

    def export_numpy(
        self,
        payloads: Sequence[FramePayload],
        output_path: Union[str, Path],
        capacity: int = 0,
    ) -> Path:
        """
        Export per-frame spark state as a NumPy .npz archive.

        Arrays: ``times (F,)``, ``active_arcs (F,)``,
        ``spark_positions (F, N, 3)`` and ``spark_alive (F, N)``.
        ``capacity`` sets N for an empty run; otherwise N comes from the
        payloads.
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        if payloads:
            positions = np.stack([p.spark_positions for p in payloads])
            alive = np.stack([p.spark_alive for p in payloads])
        else:
            positions = np.zeros((0, capacity, 3), dtype=np.float32)
            alive = np.zeros((0, capacity), dtype=bool)

        np.savez_compressed(
            output_path,
            times=np.array([p.time for p in payloads], dtype=np.float64),
            active_arcs=np.array([len(p.arcs) for p in payloads], dtype=np.int32),
            spark_positions=positions,
            spark_alive=alive,
        )

        return output_path
