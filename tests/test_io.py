from __future__ import annotations

import numpy as np
from PIL import Image
import pytest

from riverscape.io import OutputExistsError, clear_run_dir, prepare_run_dir, publish_staged, run_dir_for, save_raster


def test_run_dir_layout(tmp_path) -> None:
    assert run_dir_for(tmp_path, 12, 64, 32) == tmp_path / "12" / "64x32"


def test_prepare_run_dir_refuses_existing_output(tmp_path) -> None:
    run_dir = prepare_run_dir(tmp_path, 3, 8, 8, overwrite=False)
    (run_dir / "height.npy").write_bytes(b"old")

    with pytest.raises(OutputExistsError, match="--overwrite"):
        prepare_run_dir(tmp_path, 3, 8, 8, overwrite=False)
    assert prepare_run_dir(tmp_path, 3, 8, 8, overwrite=True) == run_dir


def test_clear_run_dir_refuses_paths_outside_out_root(tmp_path) -> None:
    out_root = tmp_path / "out"
    elsewhere = tmp_path / "elsewhere"
    elsewhere.mkdir()
    keep = elsewhere / "keep.txt"
    keep.write_text("x", encoding="utf-8")

    with pytest.raises(ValueError, match="refusing"):
        clear_run_dir(elsewhere, out_root=out_root)
    with pytest.raises(ValueError, match="refusing"):
        clear_run_dir(out_root / ".." / "elsewhere", out_root=out_root)
    with pytest.raises(ValueError, match="refusing"):
        clear_run_dir(out_root, out_root=out_root)
    assert keep.exists()


def test_publish_staged_replaces_stale_artifacts(tmp_path) -> None:
    out_root = tmp_path / "out"
    run_dir = prepare_run_dir(out_root, 5, 4, 4, overwrite=False)
    (run_dir / "stale.png").write_bytes(b"stale")
    (run_dir / "nested").mkdir()

    stage = tmp_path / "stage"
    stage.mkdir()
    (stage / "fresh.json").write_text("{}\n", encoding="utf-8")

    publish_staged(stage, run_dir, out_root=out_root)
    assert sorted(child.name for child in run_dir.iterdir()) == ["fresh.json"]


def test_save_raster_picks_mode_from_dtype(tmp_path) -> None:
    gray16 = np.arange(12, dtype=np.uint16).reshape(3, 4) * 5000
    gray8 = np.full((3, 4), 200, dtype=np.uint8)
    rgb = np.zeros((3, 4, 3), dtype=np.uint8)
    rgb[..., 2] = 255

    save_raster(tmp_path / "a.png", gray16)
    save_raster(tmp_path / "b.png", gray8)
    save_raster(tmp_path / "c.png", rgb)

    with Image.open(tmp_path / "a.png") as img:
        assert np.array_equal(np.asarray(img).astype(np.uint16), gray16)
    with Image.open(tmp_path / "b.png") as img:
        assert img.mode == "L"
    with Image.open(tmp_path / "c.png") as img:
        assert img.mode == "RGB"
        assert np.asarray(img)[0, 0].tolist() == [0, 0, 255]


@pytest.mark.parametrize(
    "raster",
    [
        np.zeros((3, 4), dtype=np.float32),
        np.zeros((3, 4, 4), dtype=np.uint8),
        np.zeros((3, 4, 3), dtype=np.uint16),
    ],
)
def test_save_raster_rejects_unsupported_layouts(tmp_path, raster: np.ndarray) -> None:
    with pytest.raises(ValueError):
        save_raster(tmp_path / "bad.png", raster)
