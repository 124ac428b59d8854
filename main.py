"""
esa日记应用主入口
读取配置后启动交互会话，把输入的内容追加到当天的esa日记文章
"""

import asyncio
import signal
import sys

from rich.console import Console

from esa_diary.services.diary_service import DiaryService
from esa_diary.services.esa_client import EsaClient
from esa_diary.ui.input_reader import TerminalInput
from esa_diary.ui.session import CancelEvent, DiarySession, SessionSnapshot
from esa_diary.ui.view import SessionPrinter, prompt_text
from esa_diary.utils.config import Settings, get_settings
from esa_diary.utils.errors import ConfigMissing
from esa_diary.utils.logger import logger, setup_logger


async def run_session(settings: Settings, console: Console) -> SessionSnapshot:
    """
    运行交互会话

    Args:
        settings: 应用配置
        console: rich控制台

    Returns:
        退出时的会话快照
    """
    async with EsaClient.from_settings(settings) as client:
        service = DiaryService.from_settings(client, settings)
        session = DiarySession(
            service,
            history_limit=settings.history_limit,
            char_limit=settings.char_limit,
            on_change=SessionPrinter(console)
        )
        # 先输出面板，再由读取线程给出提示符
        session.on_change(session.snapshot())

        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, session.post, CancelEvent(reason="SIGINT"))
        except (NotImplementedError, RuntimeError):
            logger.warning("当前平台不支持信号处理，Ctrl+C 将直接中断程序")

        reader = TerminalInput(console, session.post, prompt=prompt_text())
        reader.start(loop)
        try:
            return await session.run()
        finally:
            reader.stop()


def main() -> int:
    try:
        settings = get_settings()
    except ConfigMissing as e:
        print(f"配置错误: {e}", file=sys.stderr)
        print("请在环境变量或 .env 文件中设置 ESA_API_TOKEN 和 ESA_TEAM_NAME", file=sys.stderr)
        return 1

    setup_logger(settings)
    logger.info(f"{settings.app_name} v{settings.app_version} 启动, 团队: {settings.esa_team_name}")

    console = Console()
    try:
        asyncio.run(run_session(settings, console))
    except KeyboardInterrupt:
        logger.info("会话被中断")
    except Exception as e:
        logger.exception(f"会话异常退出: {e}")
        console.print(f"发生错误: {e}")
        return 1

    logger.info(f"{settings.app_name} 已退出")
    return 0


if __name__ == "__main__":
    sys.exit(main())
