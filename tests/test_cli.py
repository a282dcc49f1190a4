"""
Unit tests for CLI commands.
"""

import json

from arrowml.cli.main import app
from arrowml.core.mutation import enumerate_mutations


class TestCLIHelp:
    """Test help messages and basic CLI functionality."""

    def test_main_help(self, cli_runner):
        """Test main CLI help message."""
        result = cli_runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "score" in result.stdout
        assert "mutations" in result.stdout
        assert "models" in result.stdout

    def test_score_help(self, cli_runner):
        result = cli_runner.invoke(app, ["score", "--help"])
        assert result.exit_code == 0
        assert "--template" in result.stdout
        assert "--reads" in result.stdout

    def test_mutations_help(self, cli_runner):
        result = cli_runner.invoke(app, ["mutations", "--help"])
        assert result.exit_code == 0
        assert "--top" in result.stdout

    def test_models(self, cli_runner):
        result = cli_runner.invoke(app, ["models"])
        assert result.exit_code == 0
        assert "S/P1-C1.2" in result.stdout


class TestCLIScore:
    """Test 'score' command functionality."""

    def test_text_output(self, cli_runner, template_fasta, reads_file):
        result = cli_runner.invoke(app, [
            "score",
            "-t", str(template_fasta),
            "-r", str(reads_file),
            "--quiet",
        ])

        assert result.exit_code == 0
        assert "READ SCORES" in result.stdout
        assert "rev/0" in result.stdout

    def test_json_output(self, cli_runner, true_sequence, reads_file):
        result = cli_runner.invoke(app, [
            "score",
            "-t", true_sequence,
            "-r", str(reads_file),
            "--format", "json",
            "--quiet",
        ])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["template_length"] == len(true_sequence)
        assert [r["name"] for r in data["reads"]] == ["fwd/0", "fwd/1", "rev/0", "window/0"]

    def test_tsv_to_file(self, cli_runner, true_sequence, reads_file, tmp_path):
        output = tmp_path / "scores.tsv"
        result = cli_runner.invoke(app, [
            "score",
            "-t", true_sequence,
            "-r", str(reads_file),
            "--format", "tsv",
            "-o", str(output),
        ])

        assert result.exit_code == 0
        lines = output.read_text().splitlines()
        assert lines[0].startswith("name\t")
        assert len(lines) == 5

    def test_bad_template(self, cli_runner, reads_file):
        result = cli_runner.invoke(app, [
            "score",
            "-t", "not_a_file_or_sequence.fa",
            "-r", str(reads_file),
        ])

        assert result.exit_code == 1
        assert "Could not load template" in result.output

    def test_missing_reads_file(self, cli_runner, true_sequence, tmp_path):
        result = cli_runner.invoke(app, [
            "score",
            "-t", true_sequence,
            "-r", str(tmp_path / "missing.json"),
        ])
        assert result.exit_code != 0

    def test_bad_reads_file(self, cli_runner, true_sequence, tmp_path):
        path = tmp_path / "reads.json"
        path.write_text(json.dumps([{"seq": "ACGT"}]))

        result = cli_runner.invoke(app, ["score", "-t", true_sequence, "-r", str(path)])
        assert result.exit_code == 1
        assert "Could not load reads" in result.output

    def test_no_scorable_reads(self, cli_runner, true_sequence, tmp_path):
        path = tmp_path / "reads.json"
        path.write_text(json.dumps([{"name": "short", "seq": "A", "snr": [8, 8, 8, 8]}]))

        result = cli_runner.invoke(app, ["score", "-t", true_sequence, "-r", str(path)])
        assert result.exit_code == 1
        assert "No read could be scored" in result.output


class TestCLIMutations:
    """Test 'mutations' command functionality."""

    def test_json_top(self, cli_runner, draft_template, reads_file):
        result = cli_runner.invoke(app, [
            "mutations",
            "-t", draft_template,
            "-r", str(reads_file),
            "--top", "3",
            "--format", "json",
            "--quiet",
        ])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert len(data["mutations"]) == 3
        best = data["mutations"][0]
        assert (best["type"], best["start"], best["bases"]) == ("substitution", 8, "C")

    def test_min_delta(self, cli_runner, draft_template, reads_file):
        result = cli_runner.invoke(app, [
            "mutations",
            "-t", draft_template,
            "-r", str(reads_file),
            "--min-delta", "0",
            "--format", "tsv",
            "--quiet",
        ])

        assert result.exit_code == 0
        rows = result.stdout.strip().splitlines()[1:]
        assert rows
        assert all(float(row.split("\t")[4]) > 0 for row in rows)

    def test_text_output(self, cli_runner, template_fasta, reads_file):
        result = cli_runner.invoke(app, [
            "mutations",
            "-t", str(template_fasta),
            "-r", str(reads_file),
        ])

        assert result.exit_code == 0
        assert "MUTATION SCAN" in result.stdout
        assert "sub(8, C)" in result.stdout

    def test_top_keeps_scan_counts(self, cli_runner, draft_template, reads_file):
        n_scanned = len(enumerate_mutations(draft_template))
        args = ["mutations", "-t", draft_template, "-r", str(reads_file), "--top", "3", "-q"]

        result = cli_runner.invoke(app, args)
        assert result.exit_code == 0
        assert f"Mutations scanned:   {n_scanned}" in result.stdout

        result = cli_runner.invoke(app, args + ["--min-delta", "0", "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["n_scanned"] == n_scanned
        assert 1 <= len(data["mutations"]) <= 3
        assert data["n_improving"] >= len(data["mutations"])
