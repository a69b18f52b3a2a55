"""Named outputs and failure reporting for the GitHub Actions orchestrator."""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import Any, Optional

from rich.console import Console


def escape_command_message(message: str) -> str:
    """Escape text for the message part of a workflow command."""
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class ActionOutputs:
    """Publishes step outputs via the ``GITHUB_OUTPUT`` file.

    Without an output file (local runs), outputs are printed as
    ``name=value`` lines instead.
    """

    def __init__(self, output_file: Optional[Path] = None, console: Optional[Console] = None) -> None:
        self._output_file = output_file
        self._console = console or Console(highlight=False, soft_wrap=True, markup=False, emoji=False)

    @staticmethod
    def format_output(name: str, value: Any) -> str:
        """Render one output in ``GITHUB_OUTPUT`` syntax."""
        text = "" if value is None else str(value)
        if "\n" not in text:
            return f"{name}={text}\n"
        delimiter = f"ghadelimiter_{uuid.uuid4()}"
        return f"{name}<<{delimiter}\n{text}\n{delimiter}\n"

    def set_output(self, name: str, value: Any) -> None:
        line = self.format_output(name, value)
        if self._output_file is None:
            self._console.print(line, end="")
            return
        with self._output_file.open("a", encoding="utf-8") as handle:
            handle.write(line)

    def set_outputs(self, values: dict[str, Any]) -> None:
        for name, value in values.items():
            self.set_output(name, value)

    def set_failed(self, message: str) -> None:
        """Emit an error annotation; the caller sets the exit status."""
        self._console.print(f"::error::{escape_command_message(message)}")
