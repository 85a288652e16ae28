from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import re
from typing import Any, Iterator

from PIL import Image

from pnc_scatter import GraphSettingError, ScatterGraph, generate_scatter_graph, load_graph_settings
from pnc_scatter.options import GraphSetting


LOGGER = logging.getLogger("pnc_scatter.cli")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="pnc-scatter")
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Replay recorded frames through each configured graph and write PNGs.")
    render.add_argument("--settings", type=Path, required=True, help="TOML file with [[graph]] tables.")
    render.add_argument("--frames", type=Path, required=True, help="JSONL file, one {lines, cars, polygons} frame per line.")
    render.add_argument("--out-dir", type=Path, required=True)
    render.add_argument("--every-frame", action="store_true", help="Write one PNG per frame instead of only the last.")
    render.add_argument(
        "--width",
        type=int,
        default=None,
        help="Canvas width in pixels. Default: $PNC_SCATTER_WIDTH or 640; height follows aspectRatio.",
    )
    render.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], default="WARNING")

    inspect = sub.add_parser("inspect", help="Print the parsed graph settings as JSON.")
    inspect.add_argument("--settings", type=Path, required=True)
    args = parser.parse_args(argv)

    if args.command == "render":
        logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")
        try:
            settings = load_graph_settings(args.settings)
            frames = list(_read_frames(args.frames))
        except (GraphSettingError, ValueError) as exc:
            parser.error(str(exc))
        written = _render(settings, frames, args.out_dir, every_frame=args.every_frame, width=args.width)
        print(f"render complete: graphs={len(settings)} frames={len(frames)} images={len(written)}")
        return

    if args.command == "inspect":
        try:
            settings = load_graph_settings(args.settings)
        except GraphSettingError as exc:
            parser.error(str(exc))
        print(json.dumps([_describe(setting) for setting in settings], indent=2, sort_keys=True))
        return

    raise RuntimeError(f"unsupported command: {args.command}")


def _render(
    settings: list[GraphSetting],
    frames: list[dict[str, Any]],
    out_dir: Path,
    *,
    every_frame: bool,
    width: int | None,
) -> list[Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    if not frames:
        LOGGER.warning("no frames to render")
        return written
    used_slugs: set[str] = set()
    for i, setting in enumerate(settings):
        slug = _unique_slug(setting.title, i, used_slugs)
        first = frames[0]
        graph = generate_scatter_graph(
            setting,
            first.get("lines", {}),
            first.get("cars"),
            first.get("polygons"),
            width=width,
        )
        if graph is None:
            continue
        graph.mount()
        try:
            if every_frame:
                written.append(_write_png(graph, out_dir / f"{slug}_{0:04d}.png"))
            for n, frame in enumerate(frames[1:], start=1):
                graph.receive_props(setting.properties, frame)
                if every_frame:
                    written.append(_write_png(graph, out_dir / f"{slug}_{n:04d}.png"))
            if not every_frame:
                written.append(_write_png(graph, out_dir / f"{slug}.png"))
        finally:
            graph.unmount()
    return written


def _write_png(graph: ScatterGraph, path: Path) -> Path:
    assert graph.chart is not None
    Image.fromarray(graph.chart.surface.to_numpy()).save(path)
    LOGGER.info("wrote %s", path)
    return path


def _read_frames(path: Path) -> Iterator[dict[str, Any]]:
    with path.open("r", encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, start=1):
            if not line.strip():
                continue
            try:
                frame = json.loads(line)
            except json.JSONDecodeError as exc:
                raise ValueError(f"{path}:{lineno}: invalid JSON frame: {exc.msg}") from exc
            if not isinstance(frame, dict):
                raise ValueError(f"{path}:{lineno}: frame must be a JSON object")
            yield frame


def _unique_slug(title: str | None, index: int, used: set[str]) -> str:
    base = re.sub(r"[^a-z0-9]+", "_", (title or "").lower()).strip("_") or f"graph_{index}"
    slug = base
    n = 2
    while slug in used:
        slug = f"{base}_{n}"
        n += 1
    used.add(slug)
    return slug


def _describe(setting: GraphSetting) -> dict[str, Any]:
    out: dict[str, Any] = {"title": setting.title}
    if setting.options is not None:
        out["aspect_ratio"] = setting.options.aspect_ratio
        out["sync_xy_window_size"] = setting.options.sync_xy_window_size
        out["axes"] = {
            axis: {"window_size": a.window_size, "mid_value": a.mid_value, "min": a.min, "max": a.max}
            for axis, a in setting.options.axes.items()
        }
    if setting.properties is not None:
        out["cars"] = sorted(setting.properties.cars)
        out["lines"] = sorted(setting.properties.lines)
        out["polygons"] = sorted(setting.properties.polygons)
    return out


if __name__ == "__main__":
    main()
