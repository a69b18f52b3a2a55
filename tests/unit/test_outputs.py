"""Tests for GitHub Actions output publishing."""

from __future__ import annotations

from pathlib import Path

import pytest

from ci_cache.outputs import ActionOutputs


class TestFormatOutput:
    def test_single_line(self) -> None:
        assert ActionOutputs.format_output("SemVer", "1.4.0") == "SemVer=1.4.0\n"

    def test_none_is_empty(self) -> None:
        assert ActionOutputs.format_output("BuildMetaData", None) == "BuildMetaData=\n"

    def test_numbers(self) -> None:
        assert ActionOutputs.format_output("Major", 3) == "Major=3\n"

    def test_multiline_uses_delimiter(self) -> None:
        text = ActionOutputs.format_output("notes", "line one\nline two")
        header, body_one, body_two, footer, _ = text.split("\n")
        name, delimiter = header.split("<<")
        assert name == "notes"
        assert (body_one, body_two) == ("line one", "line two")
        assert footer == delimiter


class TestSetOutput:
    def test_appends_to_output_file(self, tmp_path: Path) -> None:
        output_file = tmp_path / "github_output"
        output_file.write_text("existing=1\n", encoding="utf-8")
        outputs = ActionOutputs(output_file)

        outputs.set_outputs({"Major": 1, "Minor": 4})

        assert output_file.read_text(encoding="utf-8") == "existing=1\nMajor=1\nMinor=4\n"

    def test_prints_without_output_file(self, capsys: pytest.CaptureFixture[str]) -> None:
        ActionOutputs(None).set_output("SemVer", "1.4.0-beta.3")
        assert "SemVer=1.4.0-beta.3" in capsys.readouterr().out


class TestSetFailed:
    def test_error_annotation(self, capsys: pytest.CaptureFixture[str]) -> None:
        ActionOutputs(None).set_failed("install failed\n100% broken")
        assert "::error::install failed%0A100%25 broken" in capsys.readouterr().out
