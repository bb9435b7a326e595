from __future__ import annotations

import json
from pathlib import Path

import pytest
from fixtures import UNPARSEABLE, FakeEngine, build_tar, read_members, regular

from pandoc_tar import cli
from pandoc_tar import config as config_mod
from pandoc_tar.errors import DependencyError
from pandoc_tar.params import WrapPolicy


@pytest.fixture
def run(monkeypatch):
    """Run the CLI against in-memory stdin/stdout and a fake engine."""

    state: dict[str, object] = {"engine": FakeEngine(), "output": None}

    def invoke(argv, data=b""):
        monkeypatch.setattr(cli, "_read_input", lambda: data)
        monkeypatch.setattr(
            cli, "_write_output", lambda out: state.update(output=out)
        )
        monkeypatch.setattr(
            cli, "_build_engine", lambda: (state["engine"], "3.1.11")
        )
        return cli.main(argv)

    invoke.state = state  # type: ignore[attr-defined]
    return invoke


def test_cli_converts_archive_with_defaults(run):
    code = run([], build_tar([regular("a.md", "# Hi")]))

    assert code == 0
    ((info, content),) = read_members(run.state["output"])
    assert info.name == "a.md"
    assert json.loads(content) == {
        "blocks": [{"t": "Header", "level": 1, "c": "Hi"}]
    }


def test_cli_formats_are_wired_into_conversion(run):
    code = run(
        ["-f", "gfm", "-t", "rst", "--wrap", "none", "--columns", "50"],
        build_tar([regular("a.md", "text")]),
    )

    assert code == 0
    engine = run.state["engine"]
    assert engine.calls[0] == ("read", ("gfm", "text", False))
    assert engine.calls[1][1][:3] == ("rst", WrapPolicy.NONE, 50)
    ((_, content),) = read_members(run.state["output"])
    assert content == b"<rst>text"


def test_cli_standalone_template_file(run, tmp_path, monkeypatch):
    template = tmp_path / "page.html"
    template.write_text("<main>$body$</main>", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    code = run(
        ["-t", "html", "-s", "--template", "page.html"],
        build_tar([regular("a.md", "x")]),
    )

    assert code == 0
    assert (
        "compile_template",
        ("html", "<main>$body$</main>"),
    ) in run.state["engine"].calls


def test_cli_missing_template_is_usage_error(run, tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        run(["-s", "--template", str(tmp_path / "absent.tpl")])

    assert excinfo.value.code == 2
    assert "Unable to read template" in capsys.readouterr().err


def test_cli_rejects_non_positive_columns(run, capsys):
    with pytest.raises(SystemExit) as excinfo:
        run(["--columns", "0"])

    assert excinfo.value.code == 2
    assert "--columns must be a positive integer" in capsys.readouterr().err


def test_cli_rejects_unknown_wrap(run):
    with pytest.raises(SystemExit) as excinfo:
        run(["--wrap", "fixed"])

    assert excinfo.value.code == 2


def test_cli_bad_config_is_usage_error(run, tmp_path, capsys):
    config_path = tmp_path / "bad.toml"
    config_path.write_text("[conversion]\ncolumns = -1\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        run(["--config", str(config_path)])

    assert excinfo.value.code == 2
    assert "conversion.columns must be positive" in capsys.readouterr().err


def test_cli_unknown_log_level_is_usage_error(run, capsys):
    with pytest.raises(SystemExit) as excinfo:
        run(["--log-level", "LOUD"])

    assert excinfo.value.code == 2
    err = capsys.readouterr().err
    assert "usage:" in err
    assert "Unknown log level 'LOUD'" in err


def test_cli_version_flag(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--version"])

    assert excinfo.value.code == 0
    assert capsys.readouterr().out.startswith("pandoc-tar ")


def test_cli_missing_pandoc_exits_non_zero(monkeypatch, capsys):
    def missing():
        raise DependencyError("pandoc executable not found.")

    monkeypatch.setattr(cli, "_build_engine", missing)
    monkeypatch.setattr(
        cli, "_read_input", lambda: pytest.fail("input read before check")
    )

    assert cli.main([]) == 1
    assert "pandoc executable not found" in capsys.readouterr().err


def test_cli_soft_failures_still_exit_zero(run, capsys):
    data = build_tar(
        [regular("ok.md", "# Ok"), regular("bad.md", UNPARSEABLE)]
    )

    code = run(["--verbose"], data)

    assert code == 0
    members = read_members(run.state["output"])
    assert members[1][1] == UNPARSEABLE.encode("utf-8")
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "pandoc-tar summary" in captured.err
    assert "bad.md" in captured.err
    assert "pandoc-tar: WARNING" in captured.err


def test_cli_quiet_by_default_and_logs_to_workspace(run, capsys, tmp_path):
    code = run([], build_tar([regular("bad.md", UNPARSEABLE)]))

    assert code == 0
    assert capsys.readouterr().err == ""
    log_file = tmp_path / "pandoc-tar-home" / "logs" / "pandoc_tar.log"
    records = [
        json.loads(line)
        for line in log_file.read_text(encoding="utf-8").splitlines()
    ]
    messages = [record["message"] for record in records]
    assert "Conversion failed; entry kept unchanged" in messages
    assert messages[-1] == "Completed archive transcode"


def test_cli_env_settings_apply(run, monkeypatch):
    monkeypatch.setenv("PANDOC_TAR_TO", "markdown")

    run([], build_tar([regular("a.md", "# Title")]))

    ((_, content),) = read_members(run.state["output"])
    assert content == b"# Title\n"


def test_config_init_writes_template(tmp_path, capsys):
    target = tmp_path / "conf" / "pandoc_tar.toml"

    assert cli.main(["config", "init", "--path", str(target)]) == 0
    assert target.exists()
    assert "Wrote pandoc-tar config" in capsys.readouterr().out

    assert cli.main(["config", "init", "--path", str(target)]) == 1
    assert "already exists" in capsys.readouterr().err

    assert (
        cli.main(["config", "init", "--path", str(target), "--force"]) == 0
    )


def test_config_init_defaults_to_workspace(tmp_path):
    workspace = tmp_path / "ws"

    assert cli.main(["config", "init", "--workspace", str(workspace)]) == 0

    written = workspace.resolve() / "config" / config_mod.CONFIG_FILENAME
    assert written.exists()
    loaded = config_mod.load_config(workspace_path=workspace, env={})
    assert loaded.config_path == written
    assert loaded.config.wrap is WrapPolicy.AUTO
    assert loaded.config.columns == 72


def test_config_init_workspace_error(tmp_path, capsys):
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")

    assert cli.main(["config", "init", "--workspace", str(blocker)]) == 1
    assert capsys.readouterr().err


def test_config_subcommand_requires_action():
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["config"])

    assert excinfo.value.code == 2


def test_absolute_resolves_relative_paths(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    assert cli._absolute(Path("a/b.tpl")) == tmp_path.resolve() / "a/b.tpl"
    assert cli._absolute(None) is None
