"""Tests for the carla-tsc command line interface."""

import json

import pytest
from typer.testing import CliRunner

import carla_tsc.cli.commands.config_cmd as config_cmd
import carla_tsc.config as config_module
from carla_tsc import __version__
from carla_tsc.cli import app
from carla_tsc.config import reset_config
from carla_tsc.core.models import EvaluationReport
from carla_tsc.tsc import all_of, exclusive, leaf, optional, tsc

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    config_file = tmp_path / "config" / "config.json"
    monkeypatch.setattr(config_module, "CONFIG_FILE", config_file)
    monkeypatch.setattr(config_cmd, "CONFIG_FILE", config_file)
    for var in (
        "CARLA_TSC_DATA_DIR",
        "CARLA_TSC_MAX_WORKERS",
        "CARLA_TSC_EXCLUSIVE_POLICY",
        "CARLA_TSC_MIN_SEGMENT_TICKS",
        "CARLA_TSC_OUTPUT_DIR",
    ):
        monkeypatch.delenv(var, raising=False)
    reset_config()
    yield config_file
    reset_config()


def _json(result):
    return json.loads(result.stdout)


@pytest.fixture
def weather_yaml(tmp_path):
    path = tmp_path / "weather.yaml"
    tsc(
        "Weather",
        all_of(
            "TSCRoot",
            exclusive(
                "Weather",
                leaf("Clear", condition="weather_clear"),
                leaf("Soft Rain", condition="weather_soft_rain"),
            ),
            optional("Dynamic", leaf("Following", condition="any_entity(follows)")),
        ),
    ).to_yaml(path)
    return path


@pytest.fixture
def segments_file(tmp_path, experiment_facts):
    records = [
        {
            "segment_id": "Town01_seed1_0",
            "primary_entity_id": 1,
            "entity_ids": [1, 2],
            "tick_count": 30,
            "facts": experiment_facts(weather_clear=True),
            "relations": {"follows": [2]},
        },
        {
            "segment_id": "Town01_seed1_1",
            "primary_entity_id": 1,
            "entity_ids": [1],
            "tick_count": 30,
            "facts": experiment_facts(weather_soft_rain=True),
        },
        {
            "segment_id": "Town01_seed1_2",
            "primary_entity_id": 1,
            "tick_count": 5,
            "facts": experiment_facts(weather_clear=True),
        },
    ]
    path = tmp_path / "segments.jsonl"
    path.write_text("\n".join(json.dumps(r) for r in records) + "\n")
    return path


class TestVersion:
    """Test the --version flag."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"carla-tsc {__version__}" in result.stdout


class TestSizes:
    """Tests for the sizes command."""

    def test_json(self):
        """JSON mode lists every experiment TSC with its size."""
        result = runner.invoke(app, ["--json", "sizes"])
        assert result.exit_code == 0
        data = _json(result)
        sizes = {row["tsc"]: row["possible_instances"] for row in data["sizes"]}
        assert sizes["Full TSC"] == 5040
        assert sizes["Layer 1+2"] == 11
        assert sizes["Full Flat"] == 2**34
        assert len(sizes) == 12

    def test_table(self):
        result = runner.invoke(app, ["sizes"])
        assert result.exit_code == 0
        assert "Layer 1+2+4" in result.stdout
        assert "5,040" in result.stdout

    def test_custom_tsc(self, weather_yaml):
        result = runner.invoke(app, ["--json", "sizes", "--tsc", str(weather_yaml)])
        assert result.exit_code == 0
        assert _json(result)["sizes"] == [{"tsc": "Weather", "possible_instances": 4}]

    def test_missing_tsc_file(self, tmp_path):
        result = runner.invoke(app, ["sizes", "--tsc", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 3


class TestExportAndValidate:
    """Tests for the export and validate commands."""

    def test_roundtrip(self, tmp_path):
        """An exported declaration validates cleanly."""
        path = tmp_path / "experiment.yaml"
        result = runner.invoke(app, ["export", str(path)])
        assert result.exit_code == 0
        assert path.exists()

        result = runner.invoke(app, ["--json", "validate", str(path)])
        assert result.exit_code == 0
        data = _json(result)
        assert data["identifier"] == "Experiment TSC"
        assert data["validation"]["valid"] is True
        assert data["validation"]["warning_count"] == 1

    def test_export_flat(self, tmp_path):
        path = tmp_path / "flat.yaml"
        result = runner.invoke(app, ["--json", "export", str(path), "--flat", "layer-4-5"])
        assert result.exit_code == 0
        assert _json(result)["identifier"] == "Layer (4)+5 Flat"

    def test_export_unknown_flat(self, tmp_path):
        result = runner.invoke(app, ["export", str(tmp_path / "x.yaml"), "--flat", "nope"])
        assert result.exit_code == 1
        assert not (tmp_path / "x.yaml").exists()

    def test_validate_reports_errors(self, tmp_path):
        path = tmp_path / "broken.yaml"
        tsc(
            "Broken",
            all_of("TSCRoot", leaf("A", condition="no_such_fact"), leaf("A")),
        ).to_yaml(path)
        result = runner.invoke(app, ["--json", "validate", str(path)])
        assert result.exit_code == 1
        data = _json(result)
        assert data["status"] == "error"
        categories = {e["category"] for e in data["validation"]["errors"]}
        assert categories == {"condition", "duplicate_label"}

    def test_validate_missing_file(self, tmp_path):
        result = runner.invoke(app, ["validate", str(tmp_path / "missing.yaml")])
        assert result.exit_code == 3

    def test_validate_unparseable(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("identifier: X\nroot: [unclosed\n")
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1


class TestEvaluate:
    """Tests for the evaluate command."""

    def test_json_results(self, tmp_path, weather_yaml, segments_file):
        """Evaluation writes results and plot data and reports summaries."""
        out_dir = tmp_path / "results"
        result = runner.invoke(
            app,
            [
                "--json",
                "evaluate",
                str(segments_file),
                "--tsc",
                str(weather_yaml),
                "--workers",
                "1",
                "--save-results",
                "--write-plot-data",
                "-o",
                str(out_dir),
            ],
        )
        assert result.exit_code == 0, result.output
        data = _json(result)
        assert data["segment_count"] == 2
        assert data["settings"]["min_segment_tick_count"] == 11
        (summary,) = data["summaries"]
        assert summary["tsc_identifier"] == "Weather"
        assert summary["valid_instance_count"] == 2
        assert {i["key"] for i in summary["instances"]} == {
            "TSCRoot(Weather(Clear), Dynamic(Following))",
            "TSCRoot(Weather(Soft Rain), Dynamic)",
        }

        report = EvaluationReport.from_json(out_dir / "results.json")
        assert report.segment_count == 2
        assert (out_dir / "plot_data" / "weather.csv").exists()

    def test_quiet_human_output(self, weather_yaml, segments_file):
        result = runner.invoke(
            app,
            ["evaluate", str(segments_file), "--tsc", str(weather_yaml), "-q", "--min-ticks", "0"],
        )
        assert result.exit_code == 0
        assert "Loaded 3 segments" in result.stdout
        assert "Valid TSC instances" in result.stdout

    def test_invalid_policy(self, weather_yaml, segments_file):
        result = runner.invoke(
            app,
            ["evaluate", str(segments_file), "--tsc", str(weather_yaml), "--policy", "maybe"],
        )
        assert result.exit_code == 1

    def test_missing_segments_file(self, tmp_path, weather_yaml):
        result = runner.invoke(
            app,
            ["evaluate", str(tmp_path / "none.jsonl"), "--tsc", str(weather_yaml), "-q"],
        )
        assert result.exit_code == 3


class TestRunsAndFetch:
    """Tests for the runs and fetch commands."""

    def test_runs_missing_data(self, tmp_path):
        result = runner.invoke(app, ["runs", "--data-dir", str(tmp_path)])
        assert result.exit_code == 3

    def test_runs_json(self, tmp_path):
        town = (
            tmp_path
            / "stars-reproduction-source"
            / "stars-experiments-data"
            / "simulation_runs"
            / "Town01"
        )
        town.mkdir(parents=True)
        (town / "static_data_Town01.json").write_text("{}")
        (town / "dynamic_data_Town01_seed3.json").write_text("{}")
        result = runner.invoke(app, ["--json", "runs", "--data-dir", str(tmp_path)])
        assert result.exit_code == 0
        (run,) = _json(result)["runs"]
        assert run["map"] == "Town01"
        assert len(run["dynamic_files"]) == 1

    def test_fetch_skips_existing(self, tmp_path):
        (tmp_path / "stars-reproduction-source").mkdir()
        result = runner.invoke(app, ["--json", "fetch", "--data-dir", str(tmp_path)])
        assert result.exit_code == 0
        assert _json(result)["source_dir"] == str(tmp_path / "stars-reproduction-source")


class TestConfig:
    """Tests for the config command."""

    def test_show_json(self):
        result = runner.invoke(app, ["--json", "config", "show"])
        assert result.exit_code == 0
        assert _json(result)["config"]["evaluation"]["max_workers"] == 4

    def test_set_and_reset(self, isolated_config):
        """Set persists to the config file; reset removes it."""
        result = runner.invoke(app, ["config", "set", "evaluation.max_workers", "2"])
        assert result.exit_code == 0
        assert json.loads(isolated_config.read_text())["evaluation"]["max_workers"] == 2

        result = runner.invoke(app, ["--json", "config", "show"])
        assert _json(result)["config"]["evaluation"]["max_workers"] == 2

        result = runner.invoke(app, ["config", "reset"])
        assert result.exit_code == 0
        assert not isolated_config.exists()

    def test_set_unknown_key(self):
        result = runner.invoke(app, ["config", "set", "evaluation.nope", "1"])
        assert result.exit_code == 1

    def test_set_invalid_value(self, isolated_config):
        """A bad value exits non-zero and leaves no config file."""
        result = runner.invoke(app, ["config", "set", "evaluation.max_workers", "many"])
        assert result.exit_code == 1
        assert not isolated_config.exists()

    def test_unknown_action(self):
        result = runner.invoke(app, ["config", "frobnicate"])
        assert result.exit_code == 1
