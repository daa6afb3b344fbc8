"""End-to-end tests for the boundary search command-line entry point."""

import json

from boundary_engine.data.samples import samples_to_frame
from boundary_engine.run_boundary_search import main


def _write(tmp_path, samples):
    path = tmp_path / "samples.csv"
    samples_to_frame(samples).to_csv(path, index=False)
    return str(path)


class TestBoundarySearchCli:

    def test_json_summary(self, tmp_path, sample_factory, capsys):
        path = _write(tmp_path, sample_factory(300, seed=3))
        assert main(["--input", path, "--seed", "42", "--json", "--quiet"]) == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary["samples"] == 300
        assert summary["best_method"] in {"DecisionTree", "Clustering", "GradientSearch"}
        assert len(summary["cross_validation"]["fold_scores"]) == 5
        assert "OverfittingRisk" in summary["cross_validation"]["metrics"]

    def test_rolling_scheme(self, tmp_path, sample_factory, capsys):
        path = _write(tmp_path, sample_factory(200, seed=5))
        assert main(["--input", path, "--cv", "rolling", "--json", "--quiet"]) == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary["cross_validation"]["scheme"] == "rolling"
        assert len(summary["cross_validation"]["fold_scores"]) == 5

    def test_insufficient_data_exit_code(self, tmp_path, sample_factory, capsys):
        path = _write(tmp_path, sample_factory(3))
        assert main(["--input", path, "--json", "--quiet"]) == 2
        report = json.loads(capsys.readouterr().out)
        assert report["error_code"] == "INSUFFICIENT_DATA"

    def test_empty_file(self, tmp_path):
        path = _write(tmp_path, [])
        assert main(["--input", path, "--quiet"]) == 1
