"""Tests for the livability-browser command line interface."""

import click
import pytest
from click.testing import CliRunner

from ops.config_loader import Config
from ops.run_browser import MAP_FILENAME, REPORT_FILENAME, BrowserContext, cli


@pytest.fixture
def runner():
    return CliRunner()


def test_themes(runner, config_file):
    result = runner.invoke(cli, ["--config", str(config_file), "themes"])
    assert result.exit_code == 0
    assert "POP_DENSITY\tPopulation Density\tdemog" in result.output
    assert "BIKE_CRASH_RATE\tBicycle Crash Rate\tphs" in result.output


def test_towns(runner, config_file):
    result = runner.invoke(cli, ["--config", str(config_file), "towns"])
    assert result.exit_code == 0
    assert "3\tActon" in result.output
    assert "2\tNorth Reading" in result.output


def test_render_writes_map_and_report(runner, config_file, tmp_path):
    out = tmp_path / "rendered"
    result = runner.invoke(
        cli,
        [
            "--config",
            str(config_file),
            "render",
            "--town",
            "north reading",
            "--theme",
            "POP_DENSITY",
            "--output",
            str(out),
        ],
    )
    assert result.exit_code == 0, result.output
    assert (out / MAP_FILENAME).exists()
    report = (out / REPORT_FILENAME).read_text(encoding="utf-8")
    assert "Demographic Data for North Reading" in report


def test_render_defaults_to_configured_output_dir(runner, config_file, tmp_path):
    result = runner.invoke(cli, ["--config", str(config_file), "render", "--town", "1"])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "output" / MAP_FILENAME).exists()


def test_render_unknown_town(runner, config_file):
    result = runner.invoke(cli, ["--config", str(config_file), "render", "--town", "Springfield"])
    assert result.exit_code == 1


def test_render_unknown_theme(runner, config_file):
    result = runner.invoke(cli, ["--config", str(config_file), "render", "--theme", "NOPE"])
    assert result.exit_code == 1


def test_render_with_missing_data(runner, config_file, data_files):
    data_files["indicators"].unlink()
    result = runner.invoke(cli, ["--config", str(config_file), "render"])
    assert result.exit_code == 1


def test_replay(runner, config_file, tmp_path):
    actions = tmp_path / "actions.txt"
    actions.write_text(
        "# select a town, then a theme from the table\n"
        "town North Reading\n"
        "row walk 2\n"
        "row ms 0\n"
        "theme NOT_A_THEME\n"
        "click 99\n"
        "click 1\n"
        "theme VMT_PER_HH\n"
    )
    result = runner.invoke(cli, ["--config", str(config_file), "replay", str(actions)])
    assert result.exit_code == 0, result.output

    output = result.output
    assert "1\tload\ttown=-\ttheme=-\ttab=-" in output
    assert "2\tselect_entity\ttown=North Reading\ttheme=-\ttab=-" in output
    assert "3\tselect_theme\ttown=North Reading\ttheme=WALK_SHARE_PCT\ttab=walk" in output
    assert "ignored\trow ms 0" in output
    assert "rejected\ttheme NOT_A_THEME" in output
    assert "rejected\tclick 99" in output
    assert "4\tselect_entity\ttown=Boston\ttheme=WALK_SHARE_PCT\ttab=walk" in output
    assert "5\tselect_theme\ttown=Boston\ttheme=VMT_PER_HH\ttab=auto" in output


def test_replay_rejects_malformed_lines(runner, config_file, tmp_path):
    actions = tmp_path / "actions.txt"
    actions.write_text("jump 3\n")
    result = runner.invoke(cli, ["--config", str(config_file), "replay", str(actions)])
    assert result.exit_code != 0
    assert "unknown action" in result.output


def test_download_url(runner, config_file):
    result = runner.invoke(cli, ["--config", str(config_file), "download-url"])
    assert result.exit_code == 0
    assert "http://www.ctps.org/map/wfs?" in result.output

    result = runner.invoke(
        cli, ["--config", str(config_file), "download-url", "--host", "lindalino"]
    )
    assert "http://www.ctps.org/geoserver/wfs?" in result.output


def test_log_file(runner, config_file, tmp_path):
    log_file = tmp_path / "browser.log"
    result = runner.invoke(
        cli, ["--config", str(config_file), "--log-file", str(log_file), "themes"]
    )
    assert result.exit_code == 0
    assert log_file.exists()


def test_write_outputs_before_session_start(config_file, tmp_path):
    context = BrowserContext(Config(config_file))
    with pytest.raises(click.ClickException, match="No data loaded"):
        context.write_outputs(tmp_path)
    assert not (tmp_path / MAP_FILENAME).exists()
