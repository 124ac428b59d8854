"""
异常定义模块
统一定义配置、网络请求和日记对账流程中的错误类型
"""

from typing import List, Optional


class DiaryError(Exception):
    """所有应用错误的基类"""


class ConfigMissing(DiaryError):
    """启动时缺少必要配置，属于致命错误"""

    def __init__(self, fields: List[str]):
        self.fields = list(fields)
        super().__init__(f"缺少或非法的配置项: {', '.join(self.fields)}")


class RequestFailed(DiaryError):
    """
    esa API 请求失败

    Attributes:
        status: HTTP状态码，网络层失败时为None
    """

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)


class TransportError(RequestFailed):
    """网络层失败（连接失败、超时等）"""

    def __init__(self, message: str):
        super().__init__(message, status=None)


class RemoteRejected(RequestFailed):
    """服务端返回非2xx状态码"""

    def __init__(self, status: int, detail: str = ""):
        message = f"API错误: {status}"
        if detail:
            message = f"{message} {detail}"
        super().__init__(message, status=status)


class ReconcileError(DiaryError):
    """
    日记对账流程中某一阶段失败

    Attributes:
        stage: 失败的阶段名称
        cause: 底层异常
    """

    stage = "reconcile"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class LookupFailed(ReconcileError):
    stage = "lookup"


class CreateFailed(ReconcileError):
    stage = "create"


class ArticleNotFoundAfterCreate(ReconcileError):
    stage = "post-create lookup"


class AppendFailed(ReconcileError):
    stage = "append"
