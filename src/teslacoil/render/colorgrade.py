"""
Compositing and post-processing for rendered coil frames.

Everything here works on the float32 accumulation buffer (0-255 scale,
values may exceed 255 where arcs overlap) and only the final
``compress_highlights`` call produces uint8 output.
"""

import numpy as np
from PIL import Image, ImageFilter

# Corona mix: tight glow hugging the stroke, wide faint halo around it
CORONA_INNER_WEIGHT = 0.6
CORONA_OUTER_WEIGHT = 0.4


def add_layer(
    base: np.ndarray,
    layer: np.ndarray,
    opacity: float = 1.0,
) -> np.ndarray:
    """
    Additively blend an emissive layer onto a frame.

    Args:
        base: (H, W, 3) float32 accumulation buffer, 0-255 scale.
        layer: (H, W, 3) uint8 or float layer drawn on black.
        opacity: Layer weight (0-1).

    Returns:
        The updated float32 buffer (modified in place).
    """
    if opacity <= 0:
        return base
    base += layer.astype(np.float32) * opacity
    return base


def to_uint8(buffer: np.ndarray) -> np.ndarray:
    return np.clip(buffer, 0, 255).astype(np.uint8)


def arc_corona(
    arc_layer: np.ndarray,
    intensity: float = 0.45,
    radius: int = 8,
) -> np.ndarray:
    """
    Build the ionization halo around the arc strokes.

    Only the arc layer is blurred, so the halo takes each arc's own color
    and never blooms the ground or sparks. Two blur radii are mixed: a
    tight glow at half ``radius`` and a faint halo at twice ``radius``.

    Args:
        arc_layer: (H, W, 3) uint8 layer holding only the arc strokes.
        intensity: Halo weight (0-1).
        radius: Base blur radius in pixels.

    Returns:
        (H, W, 3) float32 layer to add onto the frame buffer.
    """
    h, w = arc_layer.shape[:2]
    if intensity <= 0 or not arc_layer.any():
        return np.zeros((h, w, 3), dtype=np.float32)

    img = Image.fromarray(arc_layer)
    inner = img.filter(ImageFilter.GaussianBlur(radius=max(1, radius // 2)))
    outer = img.filter(ImageFilter.GaussianBlur(radius=max(1, radius * 2)))

    corona = (
        np.asarray(inner, dtype=np.float32) * CORONA_INNER_WEIGHT
        + np.asarray(outer, dtype=np.float32) * CORONA_OUTER_WEIGHT
    )
    return corona * intensity


def light_falloff(
    buffer: np.ndarray,
    center: tuple[float, float],
    strength: float = 0.3,
) -> np.ndarray:
    """
    Darken the frame with distance from the light source.

    Args:
        buffer: (H, W, 3) float32 frame buffer.
        center: (x, y) pixel position of the emitter.
        strength: Darkening at the farthest frame corner (0-1).

    Returns:
        New float32 buffer.
    """
    if strength <= 0:
        return buffer

    h, w = buffer.shape[:2]
    cx, cy = center
    # Farthest corner from the light maps to r = 1
    reach = max(
        np.hypot(cx, cy),
        np.hypot(w - cx, cy),
        np.hypot(cx, h - cy),
        np.hypot(w - cx, h - cy),
        1.0,
    )

    ys = np.arange(h, dtype=np.float32)[:, np.newaxis] - cy
    xs = np.arange(w, dtype=np.float32)[np.newaxis, :] - cx
    r = np.clip(np.hypot(xs, ys) / reach, 0.0, 1.0)

    weight = 1.0 - min(strength, 1.0) * r ** 1.5
    return buffer * weight[:, :, np.newaxis]


def compress_highlights(
    buffer: np.ndarray,
    knee: float = 200.0,
) -> np.ndarray:
    """
    Convert the float buffer to uint8, rolling off overlapping arcs.

    Pixels whose brightest channel passes ``knee`` are scaled down as a
    whole so the peak approaches 255 asymptotically. All three channels
    share one factor, so a colored arc keeps its hue instead of
    bleaching to white where several strokes overlap.

    Args:
        buffer: (H, W, 3) float32 frame buffer, may exceed 255.
        knee: Peak value where compression starts.

    Returns:
        (H, W, 3) uint8 RGB array.
    """
    headroom = 255.0 - knee
    peak = np.maximum(buffer.max(axis=2), 0.0)
    over = np.maximum(peak - knee, 0.0)
    target = knee + over * headroom / (over + headroom)

    scale = np.ones_like(peak)
    hot = peak > knee
    scale[hot] = target[hot] / peak[hot]
    return to_uint8(buffer * scale[:, :, np.newaxis])
