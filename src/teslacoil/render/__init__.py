"""Offline rendering of simulation payloads."""

from teslacoil.render.camera import Camera
from teslacoil.render.scene import SceneRenderer

__all__ = ["Camera", "SceneRenderer"]
