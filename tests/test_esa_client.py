"""
esa客户端测试
使用 httpx.MockTransport 检查请求内容和错误转换
"""

import json
from datetime import datetime

import httpx
import pytest

from esa_diary.models.article import Article, DiaryEntry
from esa_diary.services.esa_client import EsaClient
from esa_diary.utils.config import Settings
from esa_diary.utils.errors import RemoteRejected, RequestFailed, TransportError


def make_client(handler) -> EsaClient:
    return EsaClient(token="secret", team="myteam", transport=httpx.MockTransport(handler))


class TestLookup:
    """按全名检索"""

    async def test_lookup_returns_first_post(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"posts": [
                {"number": 7, "name": "dairy", "body_md": "hello", "wip": True},
                {"number": 8, "name": "dairy", "body_md": "other", "wip": True}
            ]})

        async with make_client(handler) as client:
            article = await client.lookup("dairy/24/05/01/dairy")

        assert article == Article(number=7, name="dairy", body_md="hello", wip=True)
        request = seen[0]
        assert request.method == "GET"
        assert request.url.path == "/v1/teams/myteam/posts"
        assert request.url.params["q"] == "full_name:dairy/24/05/01/dairy"
        assert request.headers["Authorization"] == "Bearer secret"
        assert request.headers["Accept"] == "application/json"

    async def test_lookup_empty(self):
        async with make_client(lambda request: httpx.Response(200, json={"posts": []})) as client:
            assert await client.lookup("dairy/24/05/01/dairy") is None

    async def test_lookup_rejected(self):
        async with make_client(lambda request: httpx.Response(401, json={"error": "unauthorized"})) as client:
            with pytest.raises(RemoteRejected) as exc_info:
                await client.lookup("dairy/24/05/01/dairy")

        assert exc_info.value.status == 401

    async def test_lookup_bad_json(self):
        async with make_client(lambda request: httpx.Response(200, text="<html>")) as client:
            with pytest.raises(RemoteRejected):
                await client.lookup("dairy/24/05/01/dairy")

    async def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.lookup("dairy/24/05/01/dairy")

        assert exc_info.value.status is None
        assert isinstance(exc_info.value, RequestFailed)


class TestWrite:
    """追加与创建"""

    async def test_append_replaces_whole_body(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"number": 7})

        article = Article(number=7, name="dairy", body_md="hello", wip=False)
        entry = DiaryEntry.at(datetime(2024, 5, 1, 9, 5), "world")

        async with make_client(handler) as client:
            await client.append(article, entry)

        request = seen[0]
        assert request.method == "PUT"
        assert request.url.path == "/v1/teams/myteam/posts/7"
        assert json.loads(request.content) == {
            "post": {"name": "dairy", "body_md": "hello\n09:05 world", "wip": True}
        }

    async def test_append_rejected(self):
        article = Article(number=7, name="dairy", body_md="hello")
        entry = DiaryEntry(timestamp="09:05", text="world")

        async with make_client(lambda request: httpx.Response(500)) as client:
            with pytest.raises(RemoteRejected) as exc_info:
                await client.append(article, entry)

        assert exc_info.value.status == 500

    async def test_create_from_template(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"number": 9})

        async with make_client(handler) as client:
            await client.create_from_template(
                "dairy/24/05/01", "dairy", "Templates/dairy/24/05/01/dairy"
            )

        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/v1/teams/myteam/posts"
        assert json.loads(request.content) == {
            "post": {
                "name": "dairy",
                "category": "dairy/24/05/01",
                "wip": True,
                "template_post_full_name": "Templates/dairy/24/05/01/dairy"
            }
        }


class TestFromSettings:

    async def test_uses_api_base(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"posts": []})

        settings = Settings(
            _env_file=None, esa_api_token="t", esa_team_name="team", esa_api_base="https://esa.example.com/"
        )
        async with EsaClient.from_settings(settings, transport=httpx.MockTransport(handler)) as client:
            await client.lookup("x")

        assert str(seen[0].url).startswith("https://esa.example.com/v1/teams/team/posts")
