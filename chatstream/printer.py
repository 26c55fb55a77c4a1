"""
Terminal display for streamed replies, driven by decoder callbacks.
"""
from typing import Dict, Optional

from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

console = Console()


class RichStreamPrinter:
    """
    Shows the running total of a streamed reply in a live panel.

    Usage:
        with RichStreamPrinter(title="claude") as printer:
            await client.send(..., on_metadata=printer.on_metadata,
                              on_content=printer.on_content)
            printer.finish(failed=result.failed)

    Attributes:
        title: Title for the display panel
        border_style: Border style while streaming
        refresh_rate: Refresh rate for Live display
        text: Running total shown in the panel
    """

    def __init__(
        self,
        title: str = "Assistant",
        border_style: str = "blue",
        refresh_rate: int = 30,
        output: Optional[Console] = None,
    ):
        self.title = title
        self.border_style = border_style
        self.refresh_rate = refresh_rate
        self.console = output or console
        self.chat_id: Optional[str] = None
        self.text = ""
        self._live: Optional[Live] = None

    def __enter__(self) -> "RichStreamPrinter":
        self._live = Live(
            self._render(),
            refresh_per_second=self.refresh_rate,
            console=self.console,
        )
        self._live.__enter__()
        return self

    def __exit__(self, *exc_info) -> None:
        if self._live is not None:
            self._live.__exit__(*exc_info)
            self._live = None

    def on_metadata(self, data: Dict[str, str]) -> None:
        self.chat_id = data["id"]
        self._refresh()

    def on_content(self, accumulated: str) -> None:
        self.text = accumulated
        self._refresh()

    def finish(self, failed: bool = False, error: Optional[str] = None) -> None:
        """Switch the panel to its final state."""
        if failed and error:
            self.text = f"{self.text}\n\n{error}" if self.text else error
        self._refresh(final=True, failed=failed)

    def _refresh(self, final: bool = False, failed: bool = False) -> None:
        if self._live is not None:
            self._live.update(self._render(final, failed))

    def _render(self, final: bool = False, failed: bool = False) -> Panel:
        title = f"[bold]{self.title}[/bold]"
        if self.chat_id:
            title += f" [dim]({self.chat_id})[/dim]"

        if self.text:
            body = Text(self.text)
        else:
            body = Text("(waiting for response...)", style="dim italic")

        if failed:
            style = "red"
        elif final:
            style = "green"
        else:
            style = self.border_style
        return Panel(body, title=title, border_style=style, padding=(1, 2))
