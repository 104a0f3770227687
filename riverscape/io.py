"""Writing a generation run to disk: run directories, rasters and metadata."""

from __future__ import annotations

import json
from pathlib import Path
import shutil
from typing import Any

import numpy as np
from PIL import Image


class OutputExistsError(FileExistsError):
    """A run directory already holds artifacts and overwriting was not requested."""


def run_dir_for(out_root: str | Path, seed: int, width: int, height: int) -> Path:
    """Artifacts of one run live in ``<out_root>/<seed>/<width>x<height>``."""

    return Path(out_root) / str(seed) / f"{width}x{height}"


def prepare_run_dir(
    out_root: str | Path,
    seed: int,
    width: int,
    height: int,
    *,
    overwrite: bool,
) -> Path:
    run_dir = run_dir_for(out_root, seed, width, height)
    if run_dir.exists() and any(run_dir.iterdir()) and not overwrite:
        raise OutputExistsError(
            f"Seed {seed} at {width}x{height} already has output in {run_dir}; pass --overwrite to regenerate it."
        )
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_dir


def clear_run_dir(run_dir: Path, *, out_root: Path) -> None:
    """Remove the previous artifacts of a run.

    Only directories strictly below ``out_root`` are cleared; the root itself
    and anything reached through a symlink outside it are refused.
    """

    root = out_root.resolve()
    target = run_dir.resolve()
    if target == root or not target.is_relative_to(root):
        raise ValueError(f"refusing to clear {run_dir}: not a run directory under {out_root}")

    target.mkdir(parents=True, exist_ok=True)
    for child in target.iterdir():
        if child.is_symlink() or child.is_file():
            child.unlink()
        elif child.is_dir():
            shutil.rmtree(child)


def publish_staged(stage_dir: Path, run_dir: Path, *, out_root: Path) -> None:
    """Replace the run directory contents with the freshly staged artifacts."""

    clear_run_dir(run_dir, out_root=out_root)
    for child in stage_dir.iterdir():
        shutil.move(str(child), str(run_dir / child.name))


def write_height_npy(path: str | Path, height: np.ndarray) -> None:
    np.save(Path(path), height.astype(np.float32), allow_pickle=False)


_RASTER_MODES = {
    (np.dtype(np.uint16), 2): "I;16",
    (np.dtype(np.uint8), 2): "L",
    (np.dtype(np.uint8), 3): "RGB",
}


def save_raster(path: str | Path, raster: np.ndarray) -> None:
    """Save a uint16 grayscale, uint8 grayscale or uint8 RGB raster as PNG."""

    mode = _RASTER_MODES.get((raster.dtype, raster.ndim))
    if mode is None or (mode == "RGB" and raster.shape[2] != 3):
        raise ValueError(f"unsupported raster: dtype={raster.dtype}, shape={raster.shape}")
    Image.fromarray(np.ascontiguousarray(raster)).save(Path(path))


def write_json(path: str | Path, payload: dict[str, Any]) -> None:
    text = json.dumps(payload, indent=2, sort_keys=True)
    Path(path).write_text(text + "\n", encoding="utf-8")
