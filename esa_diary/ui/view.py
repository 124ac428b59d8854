"""
界面渲染
把会话快照渲染成rich组件
输入由终端自身回显，界面只追加输出、从不清屏，避免打断正在输入的内容
"""

from typing import Optional

from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.style import Style
from rich.text import Text
from rich import box

from esa_diary.ui.session import SessionSnapshot

TITLE = "🔥 Esa Diary CLI"
PROMPT = "📝 消息: "
HELP = "Enter: 投稿 | Ctrl+C/Esc: 退出 | exit/quit/q: 退出"
FAREWELL = "👋 再见！"

title_style = Style(color="#7D56F4", bold=True)
border_style = Style(color="#874BFD")
prompt_style = Style(color="#7D56F4", bold=True)
success_style = Style(color="#04B575", bold=True)
error_style = Style(color="#FF5F87", bold=True)
help_style = Style(color="#626262")


def prompt_text() -> Text:
    return Text(PROMPT, style=prompt_style)


def history_line(line: str) -> Text:
    return Text(line, style=success_style if line.startswith("✅") else error_style)


def render(snapshot: SessionSnapshot) -> RenderableType:
    """
    渲染会话界面

    Args:
        snapshot: 会话快照

    Returns:
        可打印的rich组件
    """
    if snapshot.quitting:
        return Text(FAREWELL, style=prompt_style)

    parts = [Text(TITLE, style=title_style), Text("")]

    if snapshot.history:
        parts.append(Text("📝 最近的投稿:"))
        parts.extend(history_line(line) for line in snapshot.history)
        parts.append(Text(""))

    if snapshot.pending:
        parts.append(Text(f"⏳ 投稿中: {snapshot.pending}", style=help_style))

    parts.append(Text(HELP, style=help_style))

    return Panel(Group(*parts), box=box.ROUNDED, border_style=border_style, padding=(1, 2), width=80)


class SessionPrinter:
    """
    会话输出器
    首次输出完整面板，之后只追加新完成的历史行并重新给出提示符
    """

    def __init__(self, console: Console):
        self.console = console
        self._completed: Optional[int] = None
        self._closed = False

    def __call__(self, snapshot: SessionSnapshot) -> None:
        if self._closed:
            return

        if snapshot.quitting:
            self._closed = True
            self.console.print()
            self.console.print(render(snapshot))
            return

        if self._completed is None:
            self._completed = snapshot.completed
            self.console.print(render(snapshot))
            return

        new = snapshot.completed - self._completed
        if new <= 0:
            return
        self._completed = snapshot.completed

        self.console.print()
        for line in snapshot.history[-new:]:
            self.console.print(history_line(line))
        self.console.print(prompt_text(), end="")
