from __future__ import annotations

import json

import numpy as np
import pytest

from cli.main import main


def _args(out_dir) -> list[str]:
    return [
        "--seed",
        "7",
        "--out",
        str(out_dir),
        "--w",
        "24",
        "--h",
        "20",
        "--extent",
        "192",
        "--overwrite",
    ]


def test_runtime_fields_only_in_meta_json(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    out_dir = tmp_path / "out"
    code = main(_args(out_dir) + ["--top-zones", "3"])
    assert code == 0

    base = out_dir / "7" / "24x20"
    meta = json.loads((base / "meta.json").read_text(encoding="utf-8"))
    deterministic_meta = json.loads((base / "deterministic_meta.json").read_text(encoding="utf-8"))

    assert meta["generation_seconds"] >= 0.0
    assert meta["analysis_seconds"] >= 0.0
    assert "generated_at_utc" in meta
    assert "python_version" in meta

    assert "generation_seconds" not in deterministic_meta
    assert "analysis_seconds" not in deterministic_meta
    assert "generated_at_utc" not in deterministic_meta

    assert deterministic_meta["seed"] == 7
    assert deterministic_meta["width"] == 24
    assert deterministic_meta["height"] == 20
    assert deterministic_meta["cell_size"] == 8.0
    assert deterministic_meta["config"]["river"]["river_width"] == 20.0
    water = deterministic_meta["water"]
    assert "num_components" in water
    assert "fraction" in water
    placement = deterministic_meta["placement"]
    assert placement["enabled"] is True
    assert set(placement["zone_counts"]) == {"building", "tank", "vehicle"}
    assert len(placement["top_zones"]) <= 3

    height = np.load(base / "height.npy")
    assert height.shape == (20, 24)
    assert height.dtype == np.float32
    assert deterministic_meta["height_range"] == [float(height.min()), float(height.max())]

    for name in (
        "height_16.png",
        "heightmap.png",
        "water_mask.png",
        "river_mask.png",
        "slope.png",
        "analysis.png",
        "analysis_zones.png",
        "terrain_types.png",
    ):
        assert (base / name).exists(), name
    assert not any(child.name.startswith(".staging-") for child in (out_dir / "7").iterdir())


def test_deterministic_meta_is_stable_across_runs(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    out_dir = tmp_path / "out"
    base = out_dir / "7" / "24x20"

    assert main(_args(out_dir)) == 0
    first = (base / "deterministic_meta.json").read_bytes()
    assert main(_args(out_dir)) == 0
    assert (base / "deterministic_meta.json").read_bytes() == first


def test_overwrite_cleans_stale_outputs(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    out_dir = tmp_path / "out"
    base = out_dir / "7" / "24x20"

    assert main(_args(out_dir)) == 0
    assert (base / "analysis_zones.png").exists()

    assert main(_args(out_dir) + ["--no-placement", "--no-json"]) == 0
    assert not (base / "analysis_zones.png").exists()
    assert not (base / "meta.json").exists()
    assert (base / "height.npy").exists()


def test_existing_output_requires_overwrite(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    out_dir = tmp_path / "out"
    args = _args(out_dir)

    assert main(args) == 0
    with pytest.raises(SystemExit) as excinfo:
        main([arg for arg in args if arg != "--overwrite"])
    assert excinfo.value.code == 2


def test_river_overrides_are_validated(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    out_dir = tmp_path / "out"

    with pytest.raises(SystemExit) as excinfo:
        main(_args(out_dir) + ["--river-direction", "0", "0"])
    assert excinfo.value.code == 2

    assert main(_args(out_dir) + ["--river-width", "12", "--river-direction", "0", "1"]) == 0
    meta = json.loads((out_dir / "7" / "24x20" / "deterministic_meta.json").read_text(encoding="utf-8"))
    assert meta["config"]["river"]["river_width"] == 12.0
    assert meta["config"]["river"]["river_direction"] == [0.0, 1.0]
