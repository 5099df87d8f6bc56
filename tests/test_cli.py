import json

import pytest

from host_health import __version__, cli
from host_health.config import get_settings
from host_health.errors import UnavailableMetric
from host_health.system_state import MetricSource


class StubSource(MetricSource):
    def __init__(self, *, missing=(), fail_disk=False, memory=(8000.0, 2000.0)):
        self.missing = list(missing)
        self.fail_disk = fail_disk
        self.memory = memory

    def missing_capabilities(self):
        return self.missing

    def read_cpu_idle(self):
        return 83.4

    def read_cpu_idle_snapshot(self):
        return 83.4

    def read_memory(self):
        return self.memory

    def read_disk_usage(self, path="/"):
        if self.fail_disk:
            raise UnavailableMetric("disk", f"cannot read usage of {path!r}")
        return 37.0

    def read_load_average(self):
        return 20.0, 2


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    monkeypatch.setenv("HOST_HEALTH_REPORT_DIR", str(tmp_path / "home"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def use_source(monkeypatch, source):
    monkeypatch.setattr(cli, "PsutilMetricSource", lambda sample_interval: source)


def test_version(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--version"])
    assert excinfo.value.code == 0
    assert __version__ in capsys.readouterr().out


def test_unknown_option_exits_with_usage(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--bogus"])
    assert excinfo.value.code == 2
    assert "usage:" in capsys.readouterr().err


def test_report_option_requires_value():
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--report"])
    assert excinfo.value.code == 2


def test_writes_report_to_custom_path(tmp_path, monkeypatch, capsys):
    use_source(monkeypatch, StubSource())
    target = tmp_path / "out" / "report.md"

    assert cli.main(["--plain", "--report", str(target)]) == 0

    text = target.read_text(encoding="utf-8")
    assert text.startswith("# System Health Report")
    assert "**45/100**" in text
    assert "## Areas for Improvement" in text
    out = capsys.readouterr().out
    assert "Overall health score: 45/100" in out
    assert str(target) in out


def test_default_report_goes_to_report_dir(tmp_path, monkeypatch):
    use_source(monkeypatch, StubSource())

    assert cli.main(["--plain"]) == 0

    reports = list((tmp_path / "home").glob("system_health_report_*.md"))
    assert len(reports) == 1


def test_rich_output(tmp_path, monkeypatch, capsys):
    use_source(monkeypatch, StubSource())

    assert cli.main(["--report", str(tmp_path / "r.md")]) == 0
    out = capsys.readouterr().out
    assert "Overall health score: 45/100" in out
    assert "Areas for improvement" in out


def test_json_output_skips_report_file(tmp_path, monkeypatch, capsys):
    use_source(monkeypatch, StubSource())

    assert cli.main(["--json"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["overall_score"] == 45
    assert not (tmp_path / "home").exists()


def test_report_path_that_is_a_directory(tmp_path, monkeypatch, capsys):
    use_source(monkeypatch, StubSource())

    assert cli.main(["--plain", "--report", str(tmp_path)]) == 2
    assert "is a directory" in capsys.readouterr().err


def test_missing_dependencies_are_listed(monkeypatch, capsys):
    use_source(monkeypatch, StubSource(missing=["psutil.getloadavg", "psutil.disk_usage"]))

    assert cli.main(["--plain"]) == 1
    err = capsys.readouterr().err
    assert "psutil.getloadavg" in err
    assert "psutil.disk_usage" in err


def test_unavailable_metric_aborts_without_report(tmp_path, monkeypatch, capsys):
    use_source(monkeypatch, StubSource(fail_disk=True))
    target = tmp_path / "report.md"

    assert cli.main(["--plain", "--report", str(target), "--disk-path", "/nowhere"]) == 1
    assert not target.exists()
    assert "/nowhere" in capsys.readouterr().err


def test_unscoreable_memory_aborts(monkeypatch):
    use_source(monkeypatch, StubSource(memory=(0.0, 0.0)))

    assert cli.main(["--plain"]) == 1


def test_unwritable_report_path(tmp_path, monkeypatch, capsys):
    use_source(monkeypatch, StubSource())
    blocker = tmp_path / "file"
    blocker.write_text("x")

    assert cli.main(["--plain", "--report", str(blocker / "report.md")]) == 1
    err = capsys.readouterr().err
    assert err.lower().count("could not write report") == 1


def test_invalid_setting_is_reported(monkeypatch, capsys):
    use_source(monkeypatch, StubSource())
    monkeypatch.setenv("HOST_HEALTH_CPU_SAMPLE_INTERVAL", "0")
    get_settings.cache_clear()

    assert cli.main(["--plain"]) == 1
    err = capsys.readouterr().err
    assert "invalid HOST_HEALTH_* setting" in err
    assert "cpu_sample_interval" in err
