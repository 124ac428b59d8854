"""
终端输入源
在后台线程读取终端输入，并把输入事件线程安全地投递到会话事件循环
"""

import asyncio
import threading
from typing import Callable, Optional

from rich.console import Console
from rich.text import TextType

from esa_diary.ui.session import CancelEvent, Event, SubmitEvent
from esa_diary.utils.logger import logger

ESCAPE = "\x1b"


class TerminalInput:
    """终端行输入读取器"""

    def __init__(self, console: Console, post: Callable[[Event], None],
                 prompt: TextType = "", read_line: Optional[Callable[[TextType], str]] = None):
        """
        初始化输入读取器

        Args:
            console: rich控制台
            post: 投递事件的函数（在事件循环线程执行）
            prompt: 输入提示
            read_line: 读取一行的函数，默认 console.input
        """
        self.console = console
        self.prompt = prompt
        self._post = post
        self._read_line = read_line or console.input
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._stopped = threading.Event()

    def start(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop
        self._thread = threading.Thread(target=self._read_forever, name="terminal-input", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stopped.set()

    def _emit(self, event: Event) -> None:
        if self._loop is None or self._stopped.is_set():
            return
        try:
            self._loop.call_soon_threadsafe(self._post, event)
        except RuntimeError:
            # 事件循环已关闭
            self._stopped.set()

    def _read_forever(self) -> None:
        while not self._stopped.is_set():
            try:
                line = self._read_line(self.prompt)
            except (EOFError, KeyboardInterrupt) as e:
                self._emit(CancelEvent(reason=type(e).__name__))
                break
            except Exception as e:
                logger.error(f"读取终端输入失败: {e}")
                self._emit(CancelEvent(reason="input error"))
                break

            if line.strip() == ESCAPE:
                self._emit(CancelEvent(reason="escape"))
                break
            self._emit(SubmitEvent(value=line))
