from __future__ import annotations

from dataclasses import dataclass

from rich import print
from rich.markup import escape

ANIMATED = "animated"
SUCCESS = "success"
FAILURE = "failure"

_STYLE_MARKUP = {
    ANIMATED: ("[cyan]", "[/cyan]", "…"),
    SUCCESS: ("[green]", "[/green]", "✓"),
    FAILURE: ("[red]", "[/red]", "✗"),
}


@dataclass
class Toast:
    """A one-line status notification that can change style as an operation finishes."""

    style: str
    title: str
    message: str | None = None

    def show(self) -> Toast:
        open_tag, close_tag, marker = _STYLE_MARKUP[self.style]
        line = f"{marker} {escape(self.title)}"
        if self.message:
            line = f"{line}: {escape(self.message)}"
        print(f"{open_tag}{line}{close_tag}")
        return self

    def succeed(self, title: str, message: str | None = None) -> Toast:
        self.style, self.title, self.message = SUCCESS, title, message
        return self.show()

    def fail(self, title: str, message: str | None = None) -> Toast:
        self.style, self.title, self.message = FAILURE, title, message
        return self.show()


def show_toast(style: str, title: str, message: str | None = None) -> Toast:
    return Toast(style, title, message).show()


def show_failure(title: str, error: BaseException | str) -> Toast:
    return show_toast(FAILURE, title, str(error))
