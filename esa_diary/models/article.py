"""
日记文章数据模型
定义esa文章、文章路径、日记条目等数据结构
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field, field_validator

DIARY_ROOT = "dairy"
DIARY_NAME = "dairy"
TEMPLATE_ROOT = "Templates"


class Article(BaseModel):
    """esa文章模型（仅保留本应用用到的字段）"""

    number: int
    name: str
    body_md: str = ""
    wip: bool = True

    class Config:
        extra = "ignore"


class PostsResponse(BaseModel):
    """esa文章检索响应模型"""

    posts: List[Article] = Field(default_factory=list)

    class Config:
        extra = "ignore"


class ArticlePath(BaseModel):
    """
    当天日记文章的路径
    完全由日期推导，不做本地持久化
    """

    category: str
    name: str = DIARY_NAME

    class Config:
        frozen = True

    @classmethod
    def for_date(cls, day: datetime) -> "ArticlePath":
        """
        根据日期计算文章路径

        Args:
            day: 日期

        Returns:
            形如 dairy/YY/MM/DD 的文章路径
        """
        return cls(category=f"{DIARY_ROOT}/{day.strftime('%y/%m/%d')}")

    @property
    def full_name(self) -> str:
        return f"{self.category}/{self.name}"

    @property
    def template_full_name(self) -> str:
        return f"{TEMPLATE_ROOT}/{self.full_name}"


class DiaryEntry(BaseModel):
    """日记条目（HH:MM + 文本）"""

    timestamp: str
    text: str

    class Config:
        frozen = True

    @field_validator("text")
    @classmethod
    def _strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("日记内容不能为空")
        return value

    @classmethod
    def at(cls, moment: datetime, text: str) -> "DiaryEntry":
        """按给定时刻创建条目"""
        return cls(timestamp=moment.strftime("%H:%M"), text=text)

    def render(self) -> str:
        return f"{self.timestamp} {self.text}"

    def append_to(self, body: str) -> str:
        """
        追加到已有正文末尾，不修改原有内容

        Args:
            body: 文章现有正文

        Returns:
            追加后的完整正文
        """
        return f"{body}\n{self.render()}"


class PostResult(BaseModel):
    """一次投稿成功后的结果"""

    number: int
    full_name: str
    entry: str
    created: bool = False
