from __future__ import annotations

from pathlib import Path

import pytest

from pandoc_tar.core import workspace


def test_ensure_workspace_creates_config_and_logs(tmp_path, monkeypatch):
    root = tmp_path / "data"
    monkeypatch.setenv(workspace.WORKSPACE_ENV, str(root))

    layout = workspace.ensure_workspace()

    assert layout.home == root.resolve()
    assert [name for name, _ in layout.items()] == ["config", "logs"]
    for name, path in layout.items():
        assert path.is_dir()
        assert layout.created[name] is True
    assert layout.created["home"] is True


def test_ensure_workspace_is_idempotent(tmp_path, monkeypatch):
    monkeypatch.setenv(workspace.WORKSPACE_ENV, str(tmp_path / "existing"))

    first = workspace.ensure_workspace()
    second = workspace.ensure_workspace()

    assert first.home == second.home
    assert not any(second.created.values())


def test_explicit_path_wins_over_env(tmp_path, monkeypatch):
    monkeypatch.setenv(workspace.WORKSPACE_ENV, str(tmp_path / "from-env"))
    custom = tmp_path / "custom-root"

    layout = workspace.ensure_workspace(path=custom)

    assert layout.home == custom.resolve()
    assert not (tmp_path / "from-env").exists()


def test_ensure_workspace_uses_env_mapping(tmp_path):
    env_home = tmp_path / "env-home"

    layout = workspace.ensure_workspace(
        env={workspace.WORKSPACE_ENV: str(env_home)}
    )

    assert layout.home == env_home.resolve()
    assert layout.path_for("logs") == env_home.resolve() / "logs"


def test_ensure_workspace_without_create(tmp_path, monkeypatch):
    root = tmp_path / "deferred"
    monkeypatch.setenv(workspace.WORKSPACE_ENV, str(root))

    layout = workspace.ensure_workspace(create=False)

    assert layout.home == root.resolve()
    assert not root.exists()
    assert not any(layout.created.values())


def test_without_create_rejects_file_in_place_of_directory(tmp_path):
    root = tmp_path / "ws"
    root.mkdir()
    (root / "logs").write_text("oops", encoding="utf-8")

    with pytest.raises(workspace.WorkspaceError):
        workspace.ensure_workspace(path=root, create=False)


def test_ensure_workspace_errors_when_path_is_file(tmp_path, monkeypatch):
    root = tmp_path / "file"
    root.write_text("not a dir", encoding="utf-8")
    monkeypatch.setenv(workspace.WORKSPACE_ENV, str(root))

    with pytest.raises(workspace.WorkspaceError):
        workspace.ensure_workspace()


def test_path_for_unknown_key_errors(tmp_path):
    layout = workspace.ensure_workspace(path=tmp_path / "ws", create=False)

    with pytest.raises(KeyError):
        layout.path_for("cache")


def test_default_workspace_falls_back_to_tempdir(tmp_path, monkeypatch):
    default = tmp_path / "home" / ".pandoc-tar"
    fallback = tmp_path / "fallback"
    monkeypatch.setattr(workspace, "DEFAULT_WORKSPACE", default)
    monkeypatch.setattr(workspace, "_fallback_base", lambda: fallback)
    monkeypatch.delenv(workspace.WORKSPACE_ENV, raising=False)
    real_ensure_dir = workspace._ensure_dir

    def fake_ensure_dir(path: Path) -> bool:
        if path == default.resolve():
            raise PermissionError("denied")
        return real_ensure_dir(path)

    monkeypatch.setattr(workspace, "_ensure_dir", fake_ensure_dir)

    layout = workspace.ensure_workspace()

    assert layout.home == fallback
    assert layout.created["home"] is True


def test_explicit_path_never_falls_back(tmp_path, monkeypatch):
    monkeypatch.setattr(workspace, "_fallback_base", lambda: tmp_path / "fb")

    def deny(path: Path) -> bool:
        raise PermissionError("nope")

    monkeypatch.setattr(workspace, "_ensure_dir", deny)

    with pytest.raises(workspace.WorkspaceError):
        workspace.ensure_workspace(path=tmp_path / "explicit")
    assert not (tmp_path / "fb").exists()


def test_ensure_dir_detects_non_directory(tmp_path):
    target = tmp_path / "plain-file"
    target.write_text("x", encoding="utf-8")

    with pytest.raises(workspace.WorkspaceError):
        workspace._ensure_dir(target)
