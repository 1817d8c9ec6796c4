from __future__ import annotations

import re
from pathlib import Path

import pytest
from pytest_mock import MockerFixture

from dir2prompt import cli, walker


def _write(root: Path, rel: str, content: str = "x\n") -> None:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


@pytest.mark.integration
def test_listing_matches_segments_for_a_git_project(
    tmp_path: Path,
    mocker: MockerFixture,
    capsys: pytest.CaptureFixture[str],
) -> None:
    mocker.patch.object(cli, "env_defaults", return_value={})
    mocker.patch.object(walker, "global_excludes_file", return_value=tmp_path / "no-global-ignore")
    repo = tmp_path / "repo"
    (repo / ".git").mkdir(parents=True)
    _write(repo, ".git/config", "[core]\n")
    _write(repo, ".gitignore", "*.log\n")
    _write(repo, "src/app.py", "print('hi')\n")
    _write(repo, "src/debug.log")
    _write(repo, "node_modules/x/index.js")
    _write(repo, "package-lock.json", "{}\n")
    _write(repo, "README.md", "# Demo")
    (repo / "assets").mkdir()
    (repo / "assets" / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\x00")

    exit_code = cli.main([str(repo)])

    assert exit_code == 0
    out = capsys.readouterr().out
    head, _, body = out.partition("\n---\n\n")
    listed = re.findall(r"^- `(.+)`$", head.split("## Included files\n", 1)[1], flags=re.MULTILINE)
    rendered = re.findall(r"^## `(.+)`$", body, flags=re.MULTILINE)
    assert listed == [".gitignore", "README.md", "assets/logo.png", "src/app.py"]
    assert rendered == listed
    assert f"- Root: `{repo.resolve()}`" in head
    assert "```markdown\n# Demo\n```" in body


@pytest.mark.integration
def test_config_file_patterns_apply_before_command_line(
    tmp_path: Path,
    mocker: MockerFixture,
    capsys: pytest.CaptureFixture[str],
) -> None:
    mocker.patch.object(cli, "env_defaults", return_value={})
    root = tmp_path / "root"
    _write(root, "docs/guide.md", "guide\n")
    _write(root, "docs/api.md", "api\n")
    _write(root, "main.py", "pass\n")
    config = tmp_path / "dir2prompt.yaml"
    config.write_text("exclude:\n  - docs/**\nmax-bytes: 2\n", encoding="utf-8")

    exit_code = cli.main([str(root), "--config", str(config), "--include", "docs/api.md"])

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "- `docs/api.md`" in out
    assert "docs/guide.md" not in out
    assert "(truncated to 2 bytes)" in out
    assert "- Per-file max bytes: `2`" in out
