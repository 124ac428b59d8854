"""
交互会话
单线程事件循环：处理输入事件，把投稿放到后台任务执行，并把完成事件写回历史
"""

import asyncio
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Deque, Optional, Set, Tuple, Union

from esa_diary.models.article import PostResult
from esa_diary.services.diary_service import DiaryService
from esa_diary.utils.logger import logger

QUIT_WORDS = ("exit", "quit", "q")


@dataclass(frozen=True)
class KeyEvent:
    """输入框内容变化"""
    value: str


@dataclass(frozen=True)
class SubmitEvent:
    """回车提交"""
    value: str


@dataclass(frozen=True)
class CancelEvent:
    """Ctrl+C / Esc / 输入结束"""
    reason: str = "cancel"


@dataclass(frozen=True)
class CompletionEvent:
    """后台投稿完成（成功或失败）"""
    message: str
    result: Optional[PostResult] = None
    error: Optional[BaseException] = None

    @property
    def success(self) -> bool:
        return self.error is None


Event = Union[KeyEvent, SubmitEvent, CancelEvent, CompletionEvent]


@dataclass
class SessionState:
    """会话状态"""
    history_limit: int = 10
    input_buffer: str = ""
    history: Deque[str] = field(default_factory=deque)
    quitting: bool = False
    completed: int = 0

    def __post_init__(self):
        self.history = deque(self.history, maxlen=self.history_limit)


@dataclass(frozen=True)
class SessionSnapshot:
    """提供给界面渲染的只读快照"""
    input_buffer: str
    history: Tuple[str, ...]
    quitting: bool
    pending: int
    completed: int = 0


def is_quit_command(value: str) -> bool:
    return value.strip().lower() in QUIT_WORDS


def format_completion(event: CompletionEvent) -> str:
    if event.success:
        return f"✅ 投稿完了: {event.message}"
    return f"❌ 错误: {event.error}"


class DiarySession:
    """交互会话控制器"""

    def __init__(self, service: DiaryService, history_limit: int = 10, char_limit: int = 500,
                 clock: Callable[[], datetime] = datetime.now,
                 on_change: Optional[Callable[[SessionSnapshot], None]] = None):
        """
        初始化会话

        Args:
            service: 日记服务
            history_limit: 历史记录保留条数
            char_limit: 单条输入的最大长度
            clock: 取当前时间的函数
            on_change: 每处理完一个事件后的回调，用于重新渲染
        """
        self.service = service
        self.char_limit = char_limit
        self.state = SessionState(history_limit=history_limit)
        self.events: "asyncio.Queue[Event]" = asyncio.Queue()
        self._clock = clock
        self.on_change = on_change
        self._tasks: Set["asyncio.Task[None]"] = set()

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            input_buffer=self.state.input_buffer,
            history=tuple(self.state.history),
            quitting=self.state.quitting,
            pending=len(self._tasks),
            completed=self.state.completed
        )

    def post(self, event: Event) -> None:
        """向事件队列投递事件（只能在事件循环线程调用）"""
        self.events.put_nowait(event)

    def dispatch(self, event: Event) -> None:
        """
        处理单个事件，所有状态修改都在这里同步完成

        Args:
            event: 输入事件或完成事件
        """
        state = self.state
        if state.quitting:
            return

        if isinstance(event, KeyEvent):
            state.input_buffer = event.value[:self.char_limit]

        elif isinstance(event, SubmitEvent):
            value = event.value.strip()
            if not value:
                return
            if len(value) > self.char_limit:
                logger.warning(f"输入超过 {self.char_limit} 字，超出部分被截断: {value[self.char_limit:]}")
                value = value[:self.char_limit]
            if is_quit_command(value):
                logger.info("收到退出指令")
                state.quitting = True
                return
            state.input_buffer = ""
            self._submit(value)

        elif isinstance(event, CompletionEvent):
            # deque 的 maxlen 负责淘汰最早的记录
            state.history.append(format_completion(event))
            state.completed += 1

        elif isinstance(event, CancelEvent):
            logger.info(f"会话被取消: {event.reason}")
            state.quitting = True

    def _submit(self, message: str) -> None:
        task = asyncio.create_task(self._post_in_background(message))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _post_in_background(self, message: str) -> None:
        """后台执行投稿，无论成败都投递一个完成事件"""
        try:
            result = await self.service.handle_post(self._clock(), message)
        except asyncio.CancelledError:
            logger.warning(f"投稿在退出时被取消: {message}")
            raise
        except Exception as e:
            logger.error(f"投稿失败: {message} - {e}")
            self.post(CompletionEvent(message=message, error=e))
        else:
            self.post(CompletionEvent(message=message, result=result))

    async def run(self) -> SessionSnapshot:
        """
        运行事件循环直到退出

        Returns:
            退出时的会话快照
        """
        self._notify()
        try:
            while not self.state.quitting:
                event = await self.events.get()
                self.dispatch(event)
                self._notify()
        finally:
            await self.shutdown()
        return self.snapshot()

    async def shutdown(self) -> None:
        """取消仍在执行的投稿任务，保证退出后不再写入"""
        pending = list(self._tasks)
        if not pending:
            return
        logger.warning(f"退出时取消 {len(pending)} 个未完成的投稿")
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self.snapshot())
