"""Tests for cratepub.output.console module."""

from __future__ import annotations

import pytest

from cratepub.output.console import (
    ConsoleProtocol,
    MockConsole,
    OutputRecord,
    RichConsole,
    Style,
)


class TestStyle:
    def test_str_conversion(self) -> None:
        assert str(Style.SUCCESS) == "success"
        assert str(Style.STAGE) == "stage"
        assert str(Style.DIM) == "dim"

    def test_all_styles_exist(self) -> None:
        expected = {"DEFAULT", "SUCCESS", "ERROR", "WARNING", "INFO", "DIM", "STAGE"}
        assert {s.name for s in Style} == expected


class TestMockConsole:
    """MockConsole records what a run would have shown."""

    def test_print_captures_message(self) -> None:
        console = MockConsole()
        console.print("hello")
        assert console.outputs == [OutputRecord("hello", Style.DEFAULT)]

    def test_prefixed_helpers(self) -> None:
        console = MockConsole()
        console.success("it worked")
        console.error("something failed")
        console.warning("be careful")
        console.info("fyi")
        assert console.messages == [
            "OK it worked",
            "error: something failed",
            "warning: be careful",
            "info: fyi",
        ]

    def test_stages(self) -> None:
        console = MockConsole()
        console.stage("validating")
        console.print("noise")
        console.stage("done")
        assert console.stages() == ["validating", "done"]
        assert console.outputs[0] == OutputRecord("==> validating", Style.STAGE)

    def test_has_error_and_find(self) -> None:
        console = MockConsole()
        assert console.has_error() is False
        console.print("git push origin HEAD:refs/heads/main", Style.DIM)
        console.error("recording: [push_rejected] rejected")
        assert console.has_error() is True
        assert len(console.find("push")) == 2
        assert console.text.count("\n") == 1


class TestRichConsole:
    def test_markup_in_messages_is_not_interpreted(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        console = RichConsole()
        console.print("refs/tags/[bold]v1[/bold]")
        console.success("published [crate]")

        out = capsys.readouterr().out
        assert "refs/tags/[bold]v1[/bold]" in out
        assert "OK published [crate]" in out

    def test_errors_go_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = RichConsole()
        console.error("bad")
        console.warning("careful")

        captured = capsys.readouterr()
        assert "error: bad" in captured.err
        assert "warning: careful" in captured.err
        assert captured.out == ""

    def test_stage_line(self, capsys: pytest.CaptureFixture[str]) -> None:
        RichConsole().stage("publishing")
        assert "==> publishing" in capsys.readouterr().out


def test_both_consoles_satisfy_protocol() -> None:
    def use_console(c: ConsoleProtocol) -> None:
        c.stage("validating")
        c.print("x")
        c.success("ok")
        c.info("i")

    mock = MockConsole()
    use_console(mock)
    use_console(RichConsole())
    assert len(mock.outputs) == 4
