"""
Offline scene renderer for coil simulation payloads.

Draws the ground plane, the emitter, every live arc and every live spark.
Arcs and sparks are emissive and added on top of the base scene, then the
arc corona is added, the frame darkens away from the emitter and
overlapping highlights are rolled off.
"""

from typing import Callable, Iterable, Iterator

import numpy as np
from PIL import Image, ImageDraw

from teslacoil.config import CoilConfig, CoilParams
from teslacoil.render.camera import Camera
from teslacoil.render.colorgrade import (
    add_layer,
    arc_corona,
    compress_highlights,
    light_falloff,
)
from teslacoil.simulation import FramePayload

# (clear color, ground color)
DAY_COLORS = ((0, 0, 0), (0x33, 0x33, 0x33))
NIGHT_COLORS = ((0x11, 0x11, 0x33), (0x11, 0x11, 0x11))

EMITTER_COLOR = (0x80, 0x80, 0x80)
SPARK_COLOR = (255, 255, 255)
SPARK_OPACITY = 0.8


class SceneRenderer:
    """Turns FramePayloads into RGB frames."""

    def __init__(self, config: CoilConfig | None = None):
        self.cfg = config or CoilConfig()
        self.camera = Camera(
            position=self.cfg.camera_position,
            target=self.cfg.camera_target,
            fov_degrees=self.cfg.fov_degrees,
            width=self.cfg.width,
            height=self.cfg.height,
        )
        half = self.cfg.ground_size / 2
        self._ground = np.array([
            [-half, 0.0, -half],
            [half, 0.0, -half],
            [half, 0.0, half],
            [-half, 0.0, half],
        ])

    def _draw_base(self, day_mode: bool, emitter: np.ndarray) -> Image.Image:
        clear, ground = DAY_COLORS if day_mode else NIGHT_COLORS
        img = Image.new("RGB", (self.cfg.width, self.cfg.height), clear)
        draw = ImageDraw.Draw(img)

        corners, visible = self.camera.project(self._ground)
        if visible.all():
            draw.polygon([tuple(p) for p in corners], fill=ground)

        xy, visible = self.camera.project(emitter)
        if visible[0]:
            ex, ey = xy[0]
            r = max(2, self.cfg.height // 90)
            draw.ellipse([ex - r, ey - r, ex + r, ey + r], fill=EMITTER_COLOR)
        return img

    def _draw_arcs(self, payload: FramePayload) -> np.ndarray:
        img = Image.new("RGB", (self.cfg.width, self.cfg.height), (0, 0, 0))
        draw = ImageDraw.Draw(img)
        scale = max(1.0, self.cfg.height / 540)

        for arc in payload.arcs:
            if arc.opacity <= 0:
                continue
            xy, visible = self.camera.project(arc.points)
            fill = tuple(int(c * arc.opacity) for c in arc.color)
            width = max(1, int(round(arc.thickness * scale)))

            # Break the strip wherever it crosses behind the camera
            run = []
            for p, ok in zip(xy, visible):
                if ok:
                    run.append((p[0], p[1]))
                    continue
                if len(run) > 1:
                    draw.line(run, fill=fill, width=width, joint="curve")
                run = []
            if len(run) > 1:
                draw.line(run, fill=fill, width=width, joint="curve")
        return np.asarray(img)

    def _draw_sparks(self, payload: FramePayload) -> np.ndarray:
        img = Image.new("RGB", (self.cfg.width, self.cfg.height), (0, 0, 0))
        alive = payload.spark_positions[payload.spark_alive]
        if len(alive):
            draw = ImageDraw.Draw(img)
            xy, visible = self.camera.project(alive)
            r = self.cfg.spark_size / 2
            for x, y in xy[visible]:
                draw.ellipse([x - r, y - r, x + r, y + r], fill=SPARK_COLOR)
        return np.asarray(img)

    def render_frame(self, payload: FramePayload, params: CoilParams | None = None) -> np.ndarray:
        params = params or self.cfg.params
        cfg = self.cfg

        base = np.asarray(self._draw_base(params.day_mode, payload.emitter), dtype=np.float32)
        buffer = base.copy()
        arcs = self._draw_arcs(payload)
        add_layer(buffer, arcs)
        add_layer(buffer, self._draw_sparks(payload), SPARK_OPACITY)

        if cfg.glow_enabled:
            # Brighter corona with more arcs on screen
            g_int = cfg.glow_intensity * (1.0 + 0.1 * len(payload.arcs))
            add_layer(buffer, arc_corona(arcs, intensity=min(g_int, 0.9), radius=cfg.glow_radius))

        strength = cfg.falloff_strength if params.day_mode else cfg.night_falloff_strength
        if strength > 0:
            buffer = light_falloff(buffer, self._light_center(payload.emitter), strength)
        return compress_highlights(buffer)

    def _light_center(self, emitter: np.ndarray) -> tuple[float, float]:
        """Screen position of the emitter, or the frame center when off-screen."""
        xy, visible = self.camera.project(emitter)
        if visible[0]:
            return float(xy[0, 0]), float(xy[0, 1])
        return self.cfg.width / 2, self.cfg.height / 2

    def render_timeline(
        self,
        payloads: Iterable[FramePayload],
        params: CoilParams | None = None,
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> Iterator[np.ndarray]:
        payloads = list(payloads)
        total = len(payloads)
        for i, payload in enumerate(payloads):
            yield self.render_frame(payload, params)
            if progress_callback: progress_callback(i + 1, total)
