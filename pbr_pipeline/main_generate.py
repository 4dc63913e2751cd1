"""Command line interface for generating PBR maps from a single texture."""
from __future__ import annotations

import argparse
import logging
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .core import config

LOGGER = logging.getLogger("pbr_pipeline.main_generate")


class BoolAction(argparse.Action):
    """Robust boolean flag parser supporting affirmative and negative forms."""

    def __call__(self, parser, namespace, values, option_string=None):  # type: ignore[override]
        if values is None:
            setattr(namespace, self.dest, True)
            return
        normalized = str(values).strip().lower()
        if normalized in {"1", "y", "yes", "t", "true", "on"}:
            setattr(namespace, self.dest, True)
        elif normalized in {"0", "n", "no", "f", "false", "off"}:
            setattr(namespace, self.dest, False)
        else:
            raise argparse.ArgumentTypeError(f"Invalid boolean for {option_string}: {values!r}")


def _configure_logging(log_path: Path) -> None:
    log_path.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s", "%Y-%m-%d %H:%M:%S")
    file_handler = logging.FileHandler(log_path, encoding="utf-8", delay=True)
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logging.basicConfig(level=logging.INFO, handlers=[file_handler, console_handler])


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate PBR texture maps from a source image")
    parser.add_argument("--input", type=Path, required=True, help="Source texture (PNG, JPEG, ...)")
    parser.add_argument("--output", type=Path, default=config.PATH_OUTPUT, help="Directory for the generated maps")
    parser.add_argument(
        "--maps",
        default="all",
        help="Comma separated map types to generate, e.g. height,normal,ao (default: all)",
    )
    parser.add_argument("--preset", default=None, help="Material preset id, e.g. stone or metal")
    parser.add_argument(
        "--param",
        action="append",
        default=[],
        metavar="MAP.KEY=VALUE",
        help="Override one parameter; repeatable (e.g. normal.normal_strength=3)",
    )
    parser.add_argument(
        "--seamless",
        nargs="?",
        type=float,
        const=0.25,
        default=None,
        metavar="WIDTH",
        help="Make the source tileable first, blending WIDTH of the smaller side (default 0.25)",
    )
    parser.add_argument(
        "--validate",
        nargs="?",
        default=True,
        action=BoolAction,
        help="Report PBR plausibility warnings (default: true)",
    )
    parser.add_argument("--no-validate", dest="validate", action="store_false", help="Skip validation")
    parser.add_argument("--threads", type=int, default=4, help="Worker threads used to write maps")
    parser.add_argument("--log-file", type=Path, default=None, help="Log file path")
    return parser.parse_args(argv)


def parse_param_overrides(items: Sequence[str]) -> Dict[str, Dict[str, str]]:
    """Group ``MAP.KEY=VALUE`` strings by map type value."""

    from .modules.pbr.parameters import MapType, params_to_dict

    overrides: Dict[str, Dict[str, str]] = defaultdict(dict)
    for item in items:
        target, sep, value = item.partition("=")
        map_name, dot, key = target.partition(".")
        if not sep or not dot or not key:
            raise argparse.ArgumentTypeError(f"Expected MAP.KEY=VALUE, got {item!r}")
        overrides[MapType.parse(map_name).value][key.strip()] = value.strip()
    return dict(overrides)


def parse_map_list(text: str) -> List[str]:
    from .modules.pbr.parameters import MapType, params_to_dict

    if text.strip().lower() == "all":
        return [map_type.value for map_type in MapType]
    return [MapType.parse(part).value for part in text.split(",") if part.strip()]


def build_runtime_config(args: argparse.Namespace) -> Dict[str, object]:
    overrides: Dict[str, object] = {"PATH_OUTPUT": args.output.resolve()}
    if args.log_file is not None:
        overrides["LOG_FILE"] = args.log_file.resolve()
    return config.build_config(overrides)


def run(args: argparse.Namespace, cfg: Dict[str, object]) -> int:
    from .core.utils_io import SafeFileManager, load_source_image
    from .core.utils_parallel import run_parallel
    from .modules.pbr.parameters import MapType, params_to_dict
    from .modules.pbr.raster import Raster
    from .modules.pbr.scheduler import GenerationScheduler
    from .modules.pbr.state import GenerationStatus
    from .modules.pbr.tiling import make_seamless
    from .modules.pbr.validation import validate_pbr

    selected = parse_map_list(args.maps)
    overrides = parse_param_overrides(args.param)

    scheduler = GenerationScheduler(config=cfg)
    try:
        loaded = load_source_image(args.input, scheduler.config.max_source_dim)
        source = Raster.from_image(loaded.image)
        if args.seamless is not None:
            source = make_seamless(source, args.seamless)
        scheduler.load_source(source, loaded.file_name, loaded.file_size)
        if args.preset:
            scheduler.apply_preset(args.preset)
        for map_name, partial in overrides.items():
            scheduler.update_params(map_name, partial)
        for map_name in selected:
            LOGGER.debug("%s parameters: %s", map_name, params_to_dict(scheduler.state[map_name].params))

        def _report(progress: int, map_type: Optional[MapType]) -> None:
            LOGGER.info("Progress %3d%% %s", progress, map_type.value if map_type else "done")

        results = scheduler.generate_selected(selected, progress_callback=_report)
        state = scheduler.state
        maps = state.generated_maps()

        manager = SafeFileManager(Path(cfg["PATH_OUTPUT"]))
        stem = Path(loaded.file_name).stem

        def _save(item):
            map_type, raster = item
            return manager.atomic_save(raster.to_image(), f"{stem}_{map_type.value}.png")

        written = run_parallel(_save, list(maps.items()), max_workers=args.threads)
        for path in written:
            LOGGER.info("Wrote %s", path)

        if args.validate:
            issues = validate_pbr(maps)
            if not issues:
                LOGGER.info("PBR values look correct")

        failed = [map_type.value for map_type, status in results.items() if status is GenerationStatus.FAILED]
        if failed:
            LOGGER.error("Failed maps: %s", ", ".join(failed))
            return 1
        return 0
    finally:
        scheduler.shutdown()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    cfg = build_runtime_config(args)
    _configure_logging(Path(cfg["LOG_FILE"]))
    LOGGER.info("Generating maps=%s preset=%s seamless=%s", args.maps, args.preset, args.seamless)
    try:
        from .modules.pbr.scheduler import GenerationScheduler  # noqa: F401
    except ModuleNotFoundError as exc:  # pragma: no cover - dependency guard
        raise SystemExit("PBR generation requires NumPy, SciPy and Pillow. Install them first.") from exc
    return run(args, cfg)


if __name__ == "__main__":
    raise SystemExit(main())
