"""
测试公共夹具
FakeEsaClient 模拟esa服务：创建后的文章要经过若干次检索才会出现在检索结果中
"""

import asyncio
from typing import Dict, List, Optional

import pytest

from esa_diary.models.article import Article, DiaryEntry
from esa_diary.services.diary_service import DiaryService


class FakeEsaClient:
    """内存中的esa服务替身"""

    def __init__(self, articles: Optional[Dict[str, Article]] = None, index_delay: int = 0,
                 latency: float = 0):
        self.articles: Dict[str, Article] = dict(articles or {})
        self.index_delay = index_delay
        self.latency = latency
        self.lookup_errors: List[Optional[Exception]] = []
        self.create_error: Optional[Exception] = None
        self.append_error: Optional[Exception] = None

        self.lookups: List[str] = []
        self.creates: List[tuple] = []
        self.appends: List[tuple] = []
        self._hidden: Dict[str, int] = {}

    async def lookup(self, full_name: str) -> Optional[Article]:
        self.lookups.append(full_name)
        await asyncio.sleep(self.latency)
        if self.lookup_errors:
            error = self.lookup_errors.pop(0)
            if error is not None:
                raise error
        if self._hidden.get(full_name, 0) > 0:
            self._hidden[full_name] -= 1
            return None
        return self.articles.get(full_name)

    async def create_from_template(self, category: str, name: str, template_full_name: str) -> None:
        self.creates.append((category, name, template_full_name))
        await asyncio.sleep(self.latency)
        if self.create_error is not None:
            raise self.create_error
        full_name = f"{category}/{name}"
        self.articles[full_name] = Article(
            number=100 + len(self.creates), name=name, body_md="# template", wip=True
        )
        self._hidden[full_name] = self.index_delay

    async def append(self, article: Article, entry: DiaryEntry) -> None:
        body = entry.append_to(article.body_md)
        self.appends.append((article.number, body))
        await asyncio.sleep(self.latency)
        if self.append_error is not None:
            raise self.append_error
        for full_name, stored in self.articles.items():
            if stored.number == article.number:
                self.articles[full_name] = stored.model_copy(update={"body_md": body})


class SleepRecorder:
    """记录等待时长，不真正等待"""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def fake_client() -> FakeEsaClient:
    return FakeEsaClient()


@pytest.fixture
def make_service(sleeper):
    def _make(client: FakeEsaClient, **kwargs) -> DiaryService:
        kwargs.setdefault("create_wait_seconds", 1.0)
        kwargs.setdefault("retry_interval_seconds", 0.5)
        return DiaryService(client, sleep=sleeper, **kwargs)
    return _make
