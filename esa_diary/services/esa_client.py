"""
esa文章服务
封装esa API的三个操作：按全名检索、追加正文、从模板创建
"""

from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from esa_diary.models.article import Article, DiaryEntry, PostsResponse
from esa_diary.utils.config import Settings
from esa_diary.utils.errors import RemoteRejected, TransportError
from esa_diary.utils.logger import logger


class EsaClient:
    """esa API 客户端"""

    def __init__(self, token: str, team: str, api_base: str = "https://api.esa.io",
                 timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        初始化客户端

        Args:
            token: esa访问令牌
            team: esa团队名
            api_base: API根地址
            timeout: 单次请求超时（秒）
            transport: 自定义httpx传输层（测试时注入）
        """
        self.team = team
        self._client = httpx.AsyncClient(
            base_url=f"{api_base.rstrip('/')}/v1/teams/{team}",
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/json"
            },
            timeout=timeout,
            transport=transport
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "EsaClient":
        return cls(
            token=settings.esa_api_token,
            team=settings.esa_team_name,
            api_base=settings.esa_api_base,
            timeout=settings.request_timeout,
            **kwargs
        )

    async def __aenter__(self) -> "EsaClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """
        发送请求并统一错误类型

        Raises:
            TransportError: 网络层失败
            RemoteRejected: 非2xx响应
        """
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"esa请求异常: {method} {url} - {e}")
            raise TransportError(f"请求失败: {e}") from e

        if not response.is_success:
            logger.error(f"esa请求失败: {method} {url} - {response.status_code} {response.text[:200]}")
            raise RemoteRejected(response.status_code, response.reason_phrase)

        return response

    async def lookup(self, full_name: str) -> Optional[Article]:
        """
        按全名检索文章

        Args:
            full_name: 文章全名，如 dairy/24/01/02/dairy

        Returns:
            第一篇匹配的文章，没有则返回None
        """
        response = await self._request("GET", "/posts", params={"q": f"full_name:{full_name}"})

        try:
            result = PostsResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(f"解析检索结果失败: {e}")
            raise RemoteRejected(response.status_code, "响应格式错误") from e

        if not result.posts:
            logger.info(f"未找到文章: {full_name}")
            return None

        article = result.posts[0]
        logger.info(f"找到文章: {full_name} (#{article.number})")
        return article

    async def append(self, article: Article, entry: DiaryEntry) -> None:
        """
        向文章末尾追加条目
        esa的更新接口是整篇替换，因此必须传入刚检索到的完整正文

        Args:
            article: 目标文章
            entry: 日记条目
        """
        payload: Dict[str, Any] = {
            "post": {
                "name": article.name,
                "body_md": entry.append_to(article.body_md),
                "wip": True
            }
        }
        await self._request("PUT", f"/posts/{article.number}", json=payload)
        logger.info(f"已追加到文章 #{article.number}: {entry.render()}")

    async def create_from_template(self, category: str, name: str, template_full_name: str) -> None:
        """
        从模板创建文章（非幂等，调用两次会创建两篇）

        Args:
            category: 文章分类
            name: 文章名
            template_full_name: 模板文章全名
        """
        payload = {
            "post": {
                "name": name,
                "category": category,
                "wip": True,
                "template_post_full_name": template_full_name
            }
        }
        await self._request("POST", "/posts", json=payload)
        logger.info(f"已从模板创建文章: {category}/{name} (模板: {template_full_name})")
