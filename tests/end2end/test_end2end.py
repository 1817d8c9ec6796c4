from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from dir2prompt import cli

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


@pytest.fixture(autouse=True)
def no_env_defaults(mocker: MockerFixture) -> None:
    mocker.patch.object(cli, "env_defaults", return_value={})


def _run(argv: list[str], capsys: pytest.CaptureFixture[str]) -> tuple[str, str]:
    assert cli.main(argv) == 0
    captured = capsys.readouterr()
    return captured.out, captured.err


def test_end_to_end_markdown_dump(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    file_path = tmp_path / "src" / "app.py"
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text("print('hi')", encoding="utf-8")

    out, err = _run([str(tmp_path)], capsys)

    assert out.startswith("# dir2prompt dump\n\n")
    assert "## Included files\n- `src/app.py`\n\n---\n\n" in out
    assert out.endswith("## `src/app.py`\n\n```python\nprint('hi')\n```\n\n")
    assert err.strip().endswith("dir2prompt: printed 1 files, skipped binary 0, skipped utf8 0")


def test_lockfiles_are_skipped_by_default_and_included_on_request(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    (tmp_path / "Cargo.lock").write_text("version = 3\n", encoding="utf-8")

    default_out, _ = _run([str(tmp_path)], capsys)
    with_lockfiles_out, err = _run([str(tmp_path), "--include-lockfiles"], capsys)

    assert "Cargo.lock" not in default_out
    assert "## `Cargo.lock`\n\n```text\nversion = 3\n```" in with_lockfiles_out
    assert "printed 1 files" in err


def test_force_include_readmits_a_file_from_an_excluded_directory(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    (tmp_path / "secrets").mkdir()
    (tmp_path / "secrets" / ".env").write_text("TOKEN=abc\n", encoding="utf-8")
    (tmp_path / "venv" / "lib").mkdir(parents=True)
    (tmp_path / "venv" / "lib" / "site.py").write_text("pass\n", encoding="utf-8")

    plain_out, _ = _run([str(tmp_path)], capsys)
    excluded_out, _ = _run([str(tmp_path), "--exclude", "secrets/**"], capsys)
    readmitted_out, _ = _run([str(tmp_path), "--exclude", "secrets/**", "--include", "secrets/.env"], capsys)

    assert "- `secrets/.env`" in plain_out
    assert "venv" not in plain_out
    assert "secrets/.env" not in excluded_out
    assert "- `secrets/.env`" in readmitted_out
    assert "## `secrets/.env`\n\n```text\nTOKEN=abc\n```" in readmitted_out
    assert "venv" not in readmitted_out


def test_content_one_byte_over_the_cap_is_truncated(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    max_bytes = 16
    (tmp_path / "notes.txt").write_text("a" * (max_bytes + 1), encoding="utf-8")

    out, _ = _run([str(tmp_path), "--max-bytes", str(max_bytes)], capsys)

    assert f"(truncated to {max_bytes} bytes)\n\n```text\n{'a' * max_bytes}\n```" in out


def test_invalid_utf8_is_lossy_by_default_and_skipped_when_strict(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    (tmp_path / "latin1.txt").write_bytes(b"caf\xe9\n")

    lossy_out, lossy_err = _run([str(tmp_path)], capsys)
    strict_out, strict_err = _run([str(tmp_path), "--strict-utf8"], capsys)

    assert "(note: contained invalid UTF-8; printed with lossy replacement)" in lossy_out
    assert "caf\ufffd\n" in lossy_out
    assert "printed 1 files, skipped binary 0, skipped utf8 0" in lossy_err
    assert "## `latin1.txt`\n\n(skipped: not valid UTF-8)\n\n" in strict_out
    assert "printed 0 files, skipped binary 0, skipped utf8 1" in strict_err


def test_nul_byte_in_first_window_marks_file_binary(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (tmp_path / "data.txt").write_bytes(b"valid text\x00" + "ünïcode".encode() * 10)

    out, err = _run([str(tmp_path)], capsys)

    assert "## `data.txt`\n\n(skipped: binary)\n\n" in out
    assert "skipped binary 1" in err


def test_rendering_twice_is_byte_identical(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (tmp_path / "a.rs").write_text("fn main() {}", encoding="utf-8")
    (tmp_path / "b.bin").write_bytes(b"\x00\x01")

    first, _ = _run([str(tmp_path)], capsys)
    second, _ = _run([str(tmp_path)], capsys)

    assert first == second
