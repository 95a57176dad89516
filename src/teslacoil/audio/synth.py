"""
Cue track synthesis.

Renders the simulation's audio cues into a mono sample buffer: each cue
is a short sawtooth zap, summed dry and through a high-pass filter for
a crackling edge, then mixed through a master gain.
"""

from pathlib import Path
from typing import Iterable, Union

import numpy as np
import soundfile as sf
from scipy import signal as scipy_signal

from teslacoil.core.arcs import AudioCue

CUE_DURATION = 0.1  # seconds
BASE_FREQ = 100.0
FREQ_SPREAD = 5000.0
CUE_GAIN = 0.1
MASTER_GAIN = 0.5
HIGHPASS_HZ = 500.0


class CueSynth:
    """
    Turns AudioCue events into a sample buffer.

    Pitch is randomized per cue, so the synth takes its own seed.
    """

    def __init__(self, sample_rate: int = 44100, seed: int | None = None):
        self.sample_rate = sample_rate
        self.rng = np.random.default_rng(seed)
        self._highpass = scipy_signal.butter(
            4,
            HIGHPASS_HZ / (sample_rate / 2),
            btype="highpass",
            output="sos",
        )

    def zap(self, intensity: float) -> np.ndarray:
        """One cue's samples, before the master gain."""
        n = int(CUE_DURATION * self.sample_rate)
        t = np.arange(n) / self.sample_rate

        freq = BASE_FREQ + self.rng.random() * FREQ_SPREAD * intensity
        freq = min(max(freq, 1.0), self.sample_rate * 0.45)

        dry = scipy_signal.sawtooth(2 * np.pi * freq * t) * (CUE_GAIN * intensity)
        wet = scipy_signal.sosfilt(self._highpass, dry)
        return (dry + wet).astype(np.float32)

    def render(self, cues: Iterable[AudioCue], duration: float) -> np.ndarray:
        """
        Mix cues into a mono track.

        Args:
            cues: Cue events; those starting outside [0, duration) are skipped.
            duration: Track length in seconds.

        Returns:
            float32 array in [-1, 1].
        """
        total = int(round(duration * self.sample_rate))
        track = np.zeros(total, dtype=np.float32)

        for cue in cues:
            start = int(cue.time * self.sample_rate)
            if start < 0 or start >= total:
                continue
            samples = self.zap(cue.intensity)
            end = min(start + len(samples), total)
            track[start:end] += samples[: end - start]

        return np.clip(track * MASTER_GAIN, -1.0, 1.0)

    def write_wav(
        self,
        cues: Iterable[AudioCue],
        duration: float,
        path: Union[str, Path],
    ) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        sf.write(path, self.render(cues, duration), self.sample_rate)
        return path
