"""
日记服务
找到（或从模板创建）当天的日记文章，然后追加一条带时间的记录
"""

import asyncio
from datetime import datetime
from typing import Awaitable, Callable, Dict, Optional

from esa_diary.models.article import Article, ArticlePath, DiaryEntry, PostResult
from esa_diary.services.esa_client import EsaClient
from esa_diary.utils.config import Settings
from esa_diary.utils.errors import (
    AppendFailed,
    ArticleNotFoundAfterCreate,
    CreateFailed,
    LookupFailed,
    RequestFailed,
)
from esa_diary.utils.logger import logger


class DiaryService:
    """日记服务"""

    def __init__(self, client: EsaClient, create_wait_seconds: float = 1.0,
                 retry_interval_seconds: float = 1.0, lookup_attempts: int = 3,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        """
        初始化日记服务

        Args:
            client: esa客户端
            create_wait_seconds: 创建文章后首次检索前的等待时间
            retry_interval_seconds: 创建后检索重试的间隔
            lookup_attempts: 创建后检索的最大次数
            sleep: 等待函数（测试时替换）
        """
        self.client = client
        self.create_wait_seconds = create_wait_seconds
        self.retry_interval_seconds = retry_interval_seconds
        self.lookup_attempts = lookup_attempts
        self._sleep = sleep
        # 同一篇文章的检索-创建-追加串行执行，避免重复创建和覆盖写
        self._locks: Dict[str, asyncio.Lock] = {}

    @classmethod
    def from_settings(cls, client: EsaClient, settings: Settings) -> "DiaryService":
        return cls(
            client,
            create_wait_seconds=settings.create_wait_seconds,
            retry_interval_seconds=settings.retry_interval_seconds,
            lookup_attempts=settings.lookup_attempts
        )

    def _lock_for(self, full_name: str) -> asyncio.Lock:
        lock = self._locks.get(full_name)
        if lock is None:
            lock = self._locks[full_name] = asyncio.Lock()
        return lock

    async def handle_post(self, today: datetime, message: str) -> PostResult:
        """
        投稿一条日记

        Args:
            today: 当前时间（决定文章路径和条目时间）
            message: 日记内容

        Returns:
            投稿结果

        Raises:
            LookupFailed: 检索文章失败
            CreateFailed: 从模板创建失败
            ArticleNotFoundAfterCreate: 创建后多次检索仍未找到
            AppendFailed: 追加正文失败
        """
        path = ArticlePath.for_date(today)
        entry = DiaryEntry.at(today, message)

        async with self._lock_for(path.full_name):
            try:
                article = await self.client.lookup(path.full_name)
            except RequestFailed as e:
                raise LookupFailed("获取文章失败", e) from e

            created = False
            if article is None:
                logger.info(f"文章不存在，从模板创建: {path.template_full_name}")
                article = await self._create_and_wait(path)
                created = True

            try:
                await self.client.append(article, entry)
            except RequestFailed as e:
                stage = "创建后追加失败" if created else "追加失败"
                raise AppendFailed(stage, e) from e

        logger.info(f"投稿完成: {path.full_name} {entry.render()}")
        return PostResult(
            number=article.number,
            full_name=path.full_name,
            entry=entry.render(),
            created=created
        )

    async def _create_and_wait(self, path: ArticlePath) -> Article:
        """
        从模板创建文章，并等待其可被检索到
        esa创建后检索索引不会立刻更新，所以需要等待后重试
        """
        try:
            await self.client.create_from_template(path.category, path.name, path.template_full_name)
        except RequestFailed as e:
            raise CreateFailed("从模板创建失败", e) from e

        await self._sleep(self.create_wait_seconds)

        last_error: Optional[RequestFailed] = None
        for attempt in range(1, self.lookup_attempts + 1):
            if attempt > 1:
                await self._sleep(self.retry_interval_seconds)
            try:
                article = await self.client.lookup(path.full_name)
            except RequestFailed as e:
                logger.warning(f"创建后检索失败 ({attempt}/{self.lookup_attempts}): {e}")
                last_error = e
                continue

            if article is not None:
                logger.info(f"创建后第 {attempt} 次检索找到文章 #{article.number}")
                return article
            logger.info(f"创建后第 {attempt} 次检索未找到文章: {path.full_name}")

        raise ArticleNotFoundAfterCreate(
            f"创建后检索 {self.lookup_attempts} 次仍未找到文章", last_error
        )
