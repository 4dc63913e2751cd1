"""Progressive, cancellable map generation over a shared :class:`EngineState`.

A single-map request runs in up to two passes: a reduced-resolution preview
for large sources, then a full-resolution refine pass using whatever
parameters are current when it runs. Every request bumps a per-map version
counter and every publish compares against it, so an older pass can never
overwrite the result of a newer request.
"""
from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set

from ...core.config import EngineConfig
from ...core.utils_io import load_source_image
from ...core.utils_parallel import ThreadingTimerBackend, TimerBackend, TimerHandle
from .generation import generate_map, generate_preview, needs_preview
from .parameters import MapType, default_params, dependent_maps, merge_params
from .presets import TexturePreset, get_preset
from .raster import Raster
from .state import EngineState, GeneratedMap, GenerationStatus, SourceImage

LOGGER = logging.getLogger("pbr_pipeline.pbr.scheduler")

Synthesize = Callable[[MapType, Raster, Any], Raster]
ProgressCallback = Callable[[int, Optional[MapType]], None]


@dataclass(frozen=True)
class GenerationEvent:
    kind: str
    map_type: Optional[MapType] = None
    version: int = 0
    raster: Optional[Raster] = None
    progress: Optional[int] = None
    error: Optional[str] = None


Listener = Callable[[GenerationEvent], None]


class _Scheduled:
    __slots__ = ("handle",)

    def __init__(self) -> None:
        self.handle: Optional[TimerHandle] = None


def _percent(done: int, total: int) -> int:
    """Percentage rounded half up."""

    if total <= 0:
        return 100
    return int(math.floor(done / total * 100 + 0.5))


def _coerce_config(config: EngineConfig | Mapping[str, object] | None) -> EngineConfig:
    if config is None:
        return EngineConfig()
    if isinstance(config, EngineConfig):
        return config
    return EngineConfig.from_dict(config)


class GenerationScheduler:
    """Owns an :class:`EngineState` and serialises every mutation of it."""

    def __init__(
        self,
        state: Optional[EngineState] = None,
        *,
        config: EngineConfig | Mapping[str, object] | None = None,
        timer: Optional[TimerBackend] = None,
        synthesize: Synthesize = generate_map,
    ) -> None:
        self.state = state if state is not None else EngineState()
        self.config = _coerce_config(config)
        self._timer: TimerBackend = timer if timer is not None else ThreadingTimerBackend()
        self._synthesize = synthesize
        self._lock = threading.RLock()
        self._idle = threading.Condition(self._lock)
        self._versions: Dict[MapType, int] = {map_type: 0 for map_type in MapType}
        self._refine_timers: Dict[MapType, _Scheduled] = {}
        self._cascade_timer: Optional[_Scheduled] = None
        self._scheduled: Set[_Scheduled] = set()
        self._running = 0
        self._listeners: List[Listener] = []

    def add_listener(self, listener: Listener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _emit(self, event: GenerationEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                LOGGER.exception("Listener %r failed handling %s event", listener, event.kind)

    def _schedule(self, delay: float, callback: Callable[[], None]) -> _Scheduled:
        token = _Scheduled()
        with self._lock:
            self._scheduled.add(token)
        token.handle = self._timer.call_later(delay, lambda: self._run_scheduled(token, callback))
        return token

    def _run_scheduled(self, token: _Scheduled, callback: Callable[[], None]) -> None:
        with self._lock:
            if token not in self._scheduled:
                return
            self._scheduled.discard(token)
            self._running += 1
        try:
            callback()
        except Exception:
            LOGGER.exception("Scheduled generation step failed")
        finally:
            with self._lock:
                self._running -= 1
                self._idle.notify_all()

    def _cancel(self, token: Optional[_Scheduled]) -> None:
        if token is None:
            return
        with self._lock:
            self._scheduled.discard(token)
            self._idle.notify_all()
        if token.handle is not None:
            token.handle.cancel()

    def _cancel_all(self) -> None:
        with self._lock:
            tokens = list(self._scheduled)
            self._refine_timers.clear()
            self._cascade_timer = None
        for token in tokens:
            self._cancel(token)

    def _bump(self, map_type: MapType) -> int:
        """Invalidate in-flight work for *map_type* and return the new version."""

        with self._lock:
            self._versions[map_type] += 1
            self._cancel(self._refine_timers.pop(map_type, None))
            return self._versions[map_type]

    def _is_stale(self, map_type: MapType, version: int) -> bool:
        return self._versions[map_type] != version or self.state.source is None

    def version(self, map_type: MapType | str) -> int:
        with self._lock:
            return self._versions[MapType.parse(map_type)]

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until nothing is scheduled or running; False on timeout."""

        with self._idle:
            return self._idle.wait_for(lambda: not self._scheduled and self._running == 0, timeout)

    def shutdown(self) -> None:
        self._cancel_all()
        LOGGER.debug("Scheduler shut down")

    def load_source(self, raster: Raster, file_name: str = "", file_size: int = 0) -> SourceImage:
        """Install a new source; every map is reset but keeps its enabled flag."""

        largest = max(raster.width, raster.height)
        if largest > self.config.max_source_dim:
            raise ValueError(
                f"Source {raster.width}x{raster.height} exceeds the {self.config.max_source_dim}px limit"
            )
        source = SourceImage(raster=raster, file_name=file_name, file_size=file_size)
        with self._lock:
            self._cancel_all()
            self._reset_maps(keep_enabled=True)
            self.state.source = source
        LOGGER.info("Loaded source %s (%dx%d)", file_name or "<memory>", raster.width, raster.height)
        self._emit(GenerationEvent("cleared"))
        return source

    def load_source_file(self, path) -> SourceImage:
        loaded = load_source_image(path, self.config.max_source_dim)
        return self.load_source(Raster.from_image(loaded.image), loaded.file_name, loaded.file_size)

    def clear_source(self) -> None:
        with self._lock:
            self._cancel_all()
            self._reset_maps(keep_enabled=False)
            self.state.source = None
        self._emit(GenerationEvent("cleared"))

    def _reset_maps(self, *, keep_enabled: bool) -> None:
        for map_type in MapType:
            self._versions[map_type] += 1
            enabled = self.state.maps[map_type].enabled if keep_enabled else True
            self.state.maps[map_type] = GeneratedMap.fresh(map_type, enabled=enabled)
        self.state.generating = False
        self.state.progress = 0
        self.state.current_map = None

    def update_params(self, map_type: MapType | str, partial: Mapping[str, Any]) -> Any:
        map_type = MapType.parse(map_type)
        with self._lock:
            record = self.state.maps[map_type]
            record.params = merge_params(record.params, partial)
            return record.params

    def apply_preset(self, preset: TexturePreset | str) -> TexturePreset:
        """Replace every map's parameters with defaults plus the preset overrides."""

        if not isinstance(preset, TexturePreset):
            preset = get_preset(preset)
        with self._lock:
            for map_type in MapType:
                self.state.maps[map_type].params = preset.params_for(map_type)
        LOGGER.info("Applied preset %s", preset.id)
        return preset

    def reset_all_params(self) -> None:
        with self._lock:
            for map_type in MapType:
                self.state.maps[map_type].params = default_params(map_type)

    def copy_common_params(self, source_type: MapType | str) -> None:
        """Copy the shared post-processing controls of one map onto all others."""

        source_type = MapType.parse(source_type)
        with self._lock:
            common = self.state.maps[source_type].params.common
            for map_type in MapType:
                if map_type is not source_type:
                    record = self.state.maps[map_type]
                    record.params = replace(record.params, common=common)

    def set_enabled(self, map_type: MapType | str, enabled: bool) -> None:
        with self._lock:
            self.state.maps[MapType.parse(map_type)].enabled = bool(enabled)

    def toggle_enabled(self, map_type: MapType | str) -> bool:
        with self._lock:
            record = self.state.maps[MapType.parse(map_type)]
            record.enabled = not record.enabled
            return record.enabled

    def clear(self, map_type: MapType | str) -> None:
        map_type = MapType.parse(map_type)
        with self._lock:
            version = self._bump(map_type)
            enabled = self.state.maps[map_type].enabled
            self.state.maps[map_type] = GeneratedMap.fresh(map_type, enabled=enabled)
            if self.state.current_map is map_type:
                self.state.current_map = None
        self._emit(GenerationEvent("cleared", map_type, version))

    def clear_all(self) -> None:
        for map_type in MapType:
            self.clear(map_type)

    def duplicate_map(self, source_type: MapType | str, target_type: MapType | str) -> bool:
        """Copy a finished raster onto another map slot."""

        source_type = MapType.parse(source_type)
        target_type = MapType.parse(target_type)
        with self._lock:
            origin = self.state.maps[source_type]
            if not origin.generated or origin.raster is None:
                return False
            version = self._bump(target_type)
            target = self.state.maps[target_type]
            target.raster = origin.raster
            target.preview = False
            target.generated = True
            target.generating = False
            target.status = GenerationStatus.IDLE
            target.error = None
            raster = origin.raster
        self._emit(GenerationEvent("final", target_type, version, raster))
        return True

    def generate(self, map_type: MapType | str, cascade: bool = True) -> Optional[int]:
        """Schedule progressive generation of *map_type*.

        Returns the request's version, or ``None`` when there is no source or
        the map is disabled.
        """

        map_type = MapType.parse(map_type)
        with self._lock:
            record = self.state.maps[map_type]
            if self.state.source is None:
                LOGGER.debug("Ignoring %s request: no source loaded", map_type.value)
                return None
            if not record.enabled:
                LOGGER.debug("Ignoring %s request: map disabled", map_type.value)
                return None
            version = self._bump(map_type)
            record.generating = True
            record.status = GenerationStatus.PREVIEWING
            record.error = None
            self.state.current_map = map_type
            self._schedule(0.0, lambda: self._start(map_type, version, cascade))
        return version

    def _start(self, map_type: MapType, version: int, cascade: bool) -> None:
        with self._lock:
            if self._is_stale(map_type, version):
                return
            source = self.state.source.raster  # type: ignore[union-attr]
            params = self.state.maps[map_type].params
        threshold = self.config.preview_threshold
        if not needs_preview(source, threshold):
            self._refine(map_type, version, cascade)
            return

        try:
            preview = generate_preview(map_type, source, params, threshold=threshold, synthesize=self._synthesize)
        except Exception as exc:
            LOGGER.exception("Error generating %s preview", map_type.value)
            self._fail(map_type, version, exc)
            return
        if not self._publish(map_type, version, preview, final=False):
            return
        with self._lock:
            if self._is_stale(map_type, version):
                return
            self.state.maps[map_type].status = GenerationStatus.REFINING
            self._refine_timers[map_type] = self._schedule(
                self.config.refine_delay, lambda: self._refine(map_type, version, cascade)
            )

    def _refine(self, map_type: MapType, version: int, cascade: bool) -> None:
        with self._lock:
            if self._is_stale(map_type, version):
                return
            self._refine_timers.pop(map_type, None)
            record = self.state.maps[map_type]
            record.status = GenerationStatus.REFINING
            source = self.state.source.raster  # type: ignore[union-attr]
            params = record.params
        try:
            result = self._synthesize(map_type, source, params)
        except Exception as exc:
            LOGGER.exception("Error generating %s map", map_type.value)
            self._fail(map_type, version, exc)
            return
        if self._publish(map_type, version, result, final=True) and cascade:
            self._schedule_cascade(map_type)

    def _publish(self, map_type: MapType, version: int, raster: Raster, *, final: bool) -> bool:
        with self._lock:
            if self._is_stale(map_type, version):
                LOGGER.debug("Dropping stale %s result (version %d)", map_type.value, version)
                return False
            record = self.state.maps[map_type]
            record.raster = raster
            record.preview = not final
            if final:
                record.generated = True
                record.generating = False
                record.status = GenerationStatus.IDLE
                record.error = None
                if self.state.current_map is map_type:
                    self.state.current_map = None
        self._emit(GenerationEvent("final" if final else "preview", map_type, version, raster))
        return True

    def _fail(self, map_type: MapType, version: int, exc: BaseException) -> None:
        with self._lock:
            if self._is_stale(map_type, version):
                return
            record = self.state.maps[map_type]
            record.reset_output()
            record.status = GenerationStatus.FAILED
            record.error = str(exc) or type(exc).__name__
            if self.state.current_map is map_type:
                self.state.current_map = None
            message = record.error
        self._emit(GenerationEvent("failed", map_type, version, error=message))

    def _schedule_cascade(self, map_type: MapType) -> None:
        with self._lock:
            dependents = [
                dep
                for dep in dependent_maps(map_type)
                if self.state.maps[dep].generated and self.state.maps[dep].enabled
            ]
            if not dependents:
                return
            self._cancel(self._cascade_timer)
            LOGGER.debug("Cascading %s to %s", map_type.value, [dep.value for dep in dependents])
            self._cascade_timer = self._schedule(self.config.cascade_delay, lambda: self._run_cascade(dependents))

    def _run_cascade(self, dependents: Iterable[MapType]) -> None:
        with self._lock:
            self._cascade_timer = None
        for dep in dependents:
            self.generate(dep, cascade=False)

    def generate_many(
        self,
        types: Iterable[MapType | str],
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Dict[MapType, GenerationStatus]:
        """Generate *types* one after another at full resolution.

        Disabled maps are skipped and a failure does not stop the batch.
        """

        selected = list(dict.fromkeys(MapType.parse(t) for t in types))
        with self._lock:
            if self.state.source is None:
                LOGGER.warning("Bulk generation requested without a source image")
                return {}
            todo = [map_type for map_type in selected if self.state.maps[map_type].enabled]
            self._cancel(self._cascade_timer)
            self._cascade_timer = None
            versions: Dict[MapType, int] = {}
            for map_type in todo:
                versions[map_type] = self._bump(map_type)
                record = self.state.maps[map_type]
                record.generating = True
                record.status = GenerationStatus.REFINING
                record.error = None
            self.state.generating = True
            self.state.progress = 0

        results: Dict[MapType, GenerationStatus] = {}
        total = len(todo)
        LOGGER.info("Generating %d maps", total)
        try:
            for index, map_type in enumerate(todo):
                self._set_progress(_percent(index, total), map_type, progress_callback)
                with self._lock:
                    if self._is_stale(map_type, versions[map_type]):
                        results[map_type] = self.state.maps[map_type].status
                        continue
                    source = self.state.source.raster  # type: ignore[union-attr]
                    params = self.state.maps[map_type].params
                try:
                    raster = self._synthesize(map_type, source, params)
                except Exception as exc:
                    LOGGER.exception("Error generating %s map", map_type.value)
                    self._fail(map_type, versions[map_type], exc)
                else:
                    self._publish(map_type, versions[map_type], raster, final=True)
                results[map_type] = self.state.maps[map_type].status
            self._set_progress(100, None, progress_callback)
        finally:
            with self._lock:
                self.state.generating = False
                self.state.current_map = None
        return results

    def _set_progress(self, progress: int, map_type: Optional[MapType], callback: Optional[ProgressCallback]) -> None:
        with self._lock:
            self.state.progress = progress
            self.state.current_map = map_type
        if callback is not None:
            callback(progress, map_type)
        self._emit(GenerationEvent("progress", map_type, progress=progress))

    def generate_all(self, progress_callback: Optional[ProgressCallback] = None) -> Dict[MapType, GenerationStatus]:
        return self.generate_many(list(MapType), progress_callback)

    def generate_selected(
        self, types: Iterable[MapType | str], progress_callback: Optional[ProgressCallback] = None
    ) -> Dict[MapType, GenerationStatus]:
        return self.generate_many(types, progress_callback)

    def generate_ungenerated(
        self, progress_callback: Optional[ProgressCallback] = None
    ) -> Dict[MapType, GenerationStatus]:
        with self._lock:
            pending = [map_type for map_type in MapType if not self.state.maps[map_type].generated]
        return self.generate_many(pending, progress_callback)


__all__ = ["GenerationEvent", "GenerationScheduler"]
