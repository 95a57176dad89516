"""
CLI entry point for the Tesla coil renderer.

Usage:
    teslacoil-render [options]
    python -m teslacoil [options]
"""

import argparse
import math
import sys
import tempfile
import time
from dataclasses import replace
from pathlib import Path

from teslacoil.audio.synth import CueSynth
from teslacoil.config import PARAM_BOUNDS, CoilConfig, CoilParams, parse_color
from teslacoil.io.encoder import encode_video
from teslacoil.io.exporter import TimelineExporter
from teslacoil.render.scene import SceneRenderer
from teslacoil.simulation import CoilSimulation

PROFILES = {
    "low": {"width": 1280, "height": 720, "fps": 30, "quality": "fast"},
    "medium": {"width": 1920, "height": 1080, "fps": 60, "quality": "medium"},
    "high": {"width": 3840, "height": 2160, "fps": 60, "quality": "high"},
}


def _progress_bar(current: int, total: int, width: int = 35):
    """Print a progress bar to stdout."""
    pct = current / max(total, 1) * 100
    filled = int(width * current / max(total, 1))
    bar = "#" * filled + "-" * (width - filled)
    if sys.stdout.isatty():
        sys.stdout.write(f"\r[{bar}] {pct:5.1f}%  frame {current}/{total}")
        sys.stdout.flush()
        if current >= total:
            sys.stdout.write("\n")
    else:
        if current % max(1, total // 20) == 0 or current >= total:
            print(f"{pct:5.1f}%  frame {current}/{total}", flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="teslacoil-render",
        description="Procedural Tesla coil discharge video renderer",
    )

    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=Path("teslacoil.mp4"),
        help="Output MP4 path (default: teslacoil.mp4)",
    )
    parser.add_argument(
        "-d", "--duration", type=float, default=10.0,
        help="Simulated seconds to render (default: 10)",
    )

    # Resolution & Profile
    parser.add_argument(
        "-p", "--profile", type=str, default="medium",
        choices=["low", "medium", "high"],
        help="Target profile (low: 720p 30fps, medium: 1080p 60fps, high: 4k 60fps)",
    )
    parser.add_argument("--width", type=int, default=None, help="Video width (overrides profile)")
    parser.add_argument("--height", type=int, default=None, help="Video height (overrides profile)")
    parser.add_argument("-f", "--fps", type=int, default=None, help="Frames per second (overrides profile)")

    # Coil parameters
    lo, hi = PARAM_BOUNDS["intensity"]
    parser.add_argument(
        "-i", "--intensity", type=float, default=1.0,
        help=f"Discharge intensity [{lo}-{hi}] (default: 1.0)",
    )
    lo, hi = PARAM_BOUNDS["num_arcs"]
    parser.add_argument(
        "-n", "--arcs", type=int, default=5,
        help=f"Target number of simultaneous arcs [{lo}-{hi}, 0 for idle] (default: 5)",
    )
    parser.add_argument(
        "--color", type=str, default="#ffffff",
        help="Arc color as hex (default: #ffffff)",
    )
    parser.add_argument("--no-sound", action="store_true", help="Render without the cue track")
    parser.add_argument("--night", action="store_true", help="Night scene colors")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for a repeatable run")

    # Post-processing
    parser.add_argument("--no-glow", action="store_true", help="Disable glow")

    # Export
    parser.add_argument(
        "--timeline", type=Path, default=None,
        help="Also write the run's timeline (.json, or .npz for spark arrays)",
    )
    parser.add_argument(
        "--geometry", action="store_true",
        help="Include arc point lists in a JSON timeline",
    )

    # Quality
    parser.add_argument(
        "-q", "--quality", type=str, default=None,
        choices=["high", "medium", "fast"],
        help="Encoding quality (defaults to profile quality)",
    )
    return parser


def build_params(args: argparse.Namespace, color) -> CoilParams:
    """
    Coil knobs from parsed arguments, pulled into PARAM_BOUNDS.

    ``--arcs 0`` is kept as an idle coil even though the slider range
    starts at 1.
    """
    params = CoilParams(
        intensity=args.intensity,
        num_arcs=args.arcs,
        arc_color=color,
        sound_enabled=not args.no_sound,
        day_mode=not args.night,
    ).clamped()
    if args.arcs <= 0:
        params = replace(params, num_arcs=0)
    return params


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        color = parse_color(args.color)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.duration <= 0:
        print(f"Error: Duration must be positive: {args.duration}", file=sys.stderr)
        sys.exit(1)

    p_cfg = PROFILES[args.profile]
    width = args.width or p_cfg["width"]
    height = args.height or p_cfg["height"]
    fps = args.fps or p_cfg["fps"]
    quality = args.quality or p_cfg["quality"]

    params = build_params(args, color)

    config = CoilConfig(
        width=width,
        height=height,
        fps=fps,
        glow_enabled=not args.no_glow,
        params=params,
    )

    # Step 1: Simulate
    total_frames = math.ceil(args.duration * fps)
    print(f"Simulating {args.duration:.1f}s ({total_frames} frames @ {fps}fps)")
    t0 = time.time()

    sim = CoilSimulation(config, seed=args.seed)
    payloads = list(sim.run(total_frames, params))
    cues = [cue for p in payloads for cue in p.cues]

    print(f"  Intensity: {params.intensity:.2f}, target arcs: {params.num_arcs}")
    print(f"  Arcs created: {sum(p.arcs_created for p in payloads)}")
    print(f"  Audio cues: {len(cues)}")
    print(f"  Simulation took {time.time() - t0:.1f}s")

    if args.timeline is not None:
        exporter = TimelineExporter()
        if args.timeline.suffix == ".npz":
            path = exporter.export_numpy(payloads, args.timeline, capacity=config.max_sparks)
        else:
            path = exporter.export_json(payloads, fps, args.timeline, include_geometry=args.geometry)
        print(f"  Timeline: {path}")

    # Step 2: Render + encode
    print(f"\nRendering {total_frames} frames at {width}x{height} @ {fps}fps")
    renderer = SceneRenderer(config)
    frame_gen = renderer.render_timeline(payloads, params, progress_callback=_progress_bar)

    t1 = time.time()
    with tempfile.TemporaryDirectory(prefix="teslacoil_") as tmp:
        audio_path = None
        if params.sound_enabled:
            audio_path = CueSynth(seed=args.seed).write_wav(cues, args.duration, Path(tmp) / "cues.wav")

        output = encode_video(
            frame_iterator=frame_gen,
            output_path=args.output,
            audio_path=audio_path,
            width=width,
            height=height,
            fps=fps,
            quality=quality,
            duration=args.duration,
            total_frames=total_frames,
        )

    elapsed = time.time() - t1
    file_size_mb = output.stat().st_size / 1024 / 1024

    print(f"\nDone! {file_size_mb:.1f} MB")
    print(f"  Render+encode took {elapsed:.1f}s ({total_frames / max(elapsed, 0.01):.1f} fps)")
    print(f"  Output: {output}")


if __name__ == "__main__":
    main()
