"""Tests for simulation run discovery."""

from pathlib import Path

import pytest

from carla_tsc.data import get_simulation_runs, seed_of


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("{}")
    return path


class TestSeedOf:
    """Tests for seed_of."""

    @pytest.mark.parametrize(
        "name,seed",
        [
            ("dynamic_data_Town01_seed2.json", 2),
            ("dynamic_data_Town01_seed10.json.gz", 10),
            ("dynamic_data_Town01.json", 0),
        ],
    )
    def test_seed(self, name, seed):
        assert seed_of(Path(name)) == seed


class TestGetSimulationRuns:
    """Tests for get_simulation_runs."""

    def test_groups_by_map_folder(self, tmp_path):
        """One wrapper per map folder, dynamic files ordered by seed."""
        _touch(tmp_path / "Town01" / "static_data_Town01.json")
        _touch(tmp_path / "Town01" / "dynamic_data_Town01_seed10.json")
        _touch(tmp_path / "Town01" / "dynamic_data_Town01_seed2.json")
        _touch(tmp_path / "Town02" / "static_data_Town02.json")
        _touch(tmp_path / "Town02" / "dynamic_data_Town02_seed1.json")

        runs = get_simulation_runs(tmp_path)

        assert [r.map_name for r in runs] == ["Town01", "Town02"]
        assert [p.name for p in runs[0].dynamic_files] == [
            "dynamic_data_Town01_seed2.json",
            "dynamic_data_Town01_seed10.json",
        ]

    def test_unordered_keeps_name_order(self, tmp_path):
        _touch(tmp_path / "Town01" / "static_data_Town01.json")
        _touch(tmp_path / "Town01" / "dynamic_data_Town01_seed10.json")
        _touch(tmp_path / "Town01" / "dynamic_data_Town01_seed2.json")

        (run,) = get_simulation_runs(tmp_path, order_files_by_seed=False)

        assert [p.name for p in run.dynamic_files] == [
            "dynamic_data_Town01_seed10.json",
            "dynamic_data_Town01_seed2.json",
        ]

    def test_skips_incomplete_folders(self, tmp_path):
        _touch(tmp_path / "OnlyStatic" / "static_data_Town03.json")
        _touch(tmp_path / "OnlyDynamic" / "dynamic_data_Town04_seed1.json")
        (tmp_path / "Empty").mkdir()

        assert get_simulation_runs(tmp_path) == []

    def test_missing_root(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_simulation_runs(tmp_path / "missing")
