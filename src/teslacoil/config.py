"""
Configuration objects for the Tesla coil simulator.

CoilConfig holds the fixed simulation constants and render settings.
CoilParams holds the live-tunable knobs read once per frame.
"""

from dataclasses import dataclass, field, replace
from typing import Tuple

Color = Tuple[int, int, int]
Vec3 = Tuple[float, float, float]

# Slider ranges for the live parameters: (min, max)
PARAM_BOUNDS = {
    "intensity": (0.1, 5.0),
    "num_arcs": (1, 20),
}


def parse_color(value: str) -> Color:
    """
    Parse a hex color string into an RGB tuple.

    Accepts "#rrggbb", "rrggbb", "#rgb" and "rgb".

    Raises:
        ValueError: If the string is not a valid hex color.
    """
    text = value.strip().lstrip("#")
    if len(text) == 3:
        text = "".join(c * 2 for c in text)
    if len(text) != 6:
        raise ValueError(f"Invalid color: {value!r}")
    try:
        rgb = int(text, 16)
    except ValueError:
        raise ValueError(f"Invalid color: {value!r}") from None
    return ((rgb >> 16) & 0xFF, (rgb >> 8) & 0xFF, rgb & 0xFF)


def color_to_hex(color: Color) -> str:
    return "#{:02x}{:02x}{:02x}".format(*color)


@dataclass
class CoilParams:
    """Live parameters. The simulation reads these but never writes them."""
    intensity: float = 1.0
    num_arcs: int = 5
    arc_color: Color = (255, 255, 255)
    sound_enabled: bool = True
    day_mode: bool = True

    def clamped(self) -> "CoilParams":
        """Returns a copy with intensity and arc count pulled into PARAM_BOUNDS."""
        lo, hi = PARAM_BOUNDS["intensity"]
        intensity = min(max(self.intensity, lo), hi)
        lo, hi = PARAM_BOUNDS["num_arcs"]
        num_arcs = int(min(max(self.num_arcs, lo), hi))
        return replace(self, intensity=intensity, num_arcs=num_arcs)


@dataclass
class CoilConfig:
    """Configuration for the simulation and its offline renderer."""
    width: int = 1920
    height: int = 1080
    fps: int = 60

    # Simulation
    max_sparks: int = 500
    max_arc_points: int = 50
    arc_lifetime: float = 0.1  # seconds
    # Top of the toroid: primary 0.5 + secondary 5.0 + half tube 0.2
    emitter_position: Vec3 = (0.0, 5.7, 0.0)

    # Camera
    camera_position: Vec3 = (0.0, 5.0, 15.0)
    camera_target: Vec3 = (0.0, 0.0, 0.0)
    fov_degrees: float = 75.0

    # Scene
    ground_size: float = 20.0
    spark_size: int = 2

    # Post-processing
    glow_enabled: bool = True
    glow_intensity: float = 0.45
    glow_radius: int = 8
    # Darkening away from the emitter; the night scene falls off harder
    falloff_strength: float = 0.3
    night_falloff_strength: float = 0.55

    params: CoilParams = field(default_factory=CoilParams)
