"""Tests for CLI helper utilities."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from ghostpost.app import cli
from ghostpost.app.pipeline import build_context, locate_note
from ghostpost.settings import AppConfig
from ghostpost.vault import LocalVault, VaultFile


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "GHOSTPOST_CONFIG",
        "GHOSTPOST_SECRETS",
        "GHOSTPOST_GHOST_ADMIN_API_KEY",
        "GHOSTPOST_STORAGE_ACCESS_KEY_ID",
        "GHOSTPOST_STORAGE_SECRET_ACCESS_KEY",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def vault_root(tmp_path: Path) -> Path:
    root = tmp_path / "Vault"
    (root / "drafts").mkdir(parents=True)
    (root / "drafts" / "First Post.md").write_text(
        "---\ntitle: First Post\ntags: AI, Tools\n---\nHello **there**\n", encoding="utf-8"
    )
    return root


def test_locate_note_by_disk_or_vault_path(vault_root: Path) -> None:
    vault = LocalVault(vault_root)
    expected = VaultFile("drafts/First Post.md")

    assert locate_note(vault, str(vault_root / "drafts" / "First Post.md")) == expected
    assert locate_note(vault, "drafts/First Post.md") == expected
    with pytest.raises(FileNotFoundError):
        locate_note(vault, "drafts/missing.md")


def test_build_context_only_builds_ghost_client_when_asked(vault_root: Path) -> None:
    config = AppConfig(vault_path=vault_root)
    config.ghost.site_url = "https://blog.example.com"
    config.ghost.admin_api_key = "id:abcd"

    assert build_context(config, with_ghost=False).ghost is None
    assert build_context(config).ghost is not None
    assert build_context(AppConfig(vault_path=vault_root)).ghost is None


def test_main_without_command_prints_help() -> None:
    assert cli.main(["--log-plain"]) == 1


def test_publish_dry_run_prints_payload(
    tmp_path: Path, vault_root: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    config_path = tmp_path / "ghostpost.toml"
    config_path.write_text(f'[app]\nvault_path = "{vault_root.as_posix()}"\n', encoding="utf-8")

    code = cli.main(["--config", str(config_path), "--log-plain", "publish", "drafts/First Post.md", "--dry-run"])

    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["title"] == "First Post"
    assert payload["slug"] == "first-post"
    assert payload["status"] == "draft"
    assert payload["html"] == "<p>Hello <strong>there</strong></p>"
    assert [tag["name"] for tag in payload["tags"]] == ["AI", "Tools"]


def test_publish_without_ghost_credentials_exits(tmp_path: Path, vault_root: Path) -> None:
    config_path = tmp_path / "ghostpost.toml"
    config_path.write_text(f'[app]\nvault_path = "{vault_root.as_posix()}"\n', encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(config_path), "publish", "drafts/First Post.md"])
    assert "Admin API key" in str(excinfo.value.code)


def test_missing_config_file_exits(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(tmp_path / "absent.toml"), "check", "storage"])
    assert "Config file not found" in str(excinfo.value.code)


def test_check_storage_requires_credentials(tmp_path: Path) -> None:
    config_path = tmp_path / "ghostpost.toml"
    config_path.write_text("[storage]\nenabled = true\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(config_path), "check", "storage"])
    assert "credentials" in str(excinfo.value.code)


def test_upload_images_ignores_malformed_admin_key(
    tmp_path: Path, vault_root: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    config_path = tmp_path / "ghostpost.toml"
    config_path.write_text(
        f'[app]\nvault_path = "{vault_root.as_posix()}"\n'
        '[ghost]\nsite_url = "https://blog.example.com"\nadmin_api_key = "broken"\n',
        encoding="utf-8",
    )

    code = cli.main(["--config", str(config_path), "--log-plain", "upload-images", "drafts/First Post.md"])

    assert code == 0
    assert capsys.readouterr().out.strip() == "uploaded: 0"
    assert (vault_root / "drafts" / "First Post.md").read_text(encoding="utf-8").startswith("---\ntitle: First Post")


def test_publish_with_malformed_admin_key_exits_cleanly(tmp_path: Path, vault_root: Path) -> None:
    config_path = tmp_path / "ghostpost.toml"
    config_path.write_text(
        f'[app]\nvault_path = "{vault_root.as_posix()}"\n'
        '[ghost]\nsite_url = "https://blog.example.com"\nadmin_api_key = "broken"\n',
        encoding="utf-8",
    )

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(config_path), "--log-plain", "publish", "drafts/First Post.md"])
    assert "Invalid Admin API key format" in str(excinfo.value.code)
