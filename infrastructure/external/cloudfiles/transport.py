"""
HTTP 传输层

基于 httpx 的同步传输实现，负责：
- 将 CloudFilesRequest 转换为 httpx 请求
- 流式上传（分块读取 + 进度回调）与流式下载
- 连接级错误统一转换为 TransportError
- 可选的连接级重试（仅限无请求体的请求）
"""
import logging
from datetime import datetime
from typing import Optional, Union

import httpx
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    before_sleep_log,
)

from core.logging_config import get_logger, mask_headers
from .base import CloudFilesRequest, RawResponse, Transport
from .constants import CONTENT_LENGTH, CONTENT_TYPE, USER_AGENT
from .exceptions import TransportError

logger = get_logger(__name__)


class HttpxTransport(Transport):
    """
    httpx 同步传输实现

    客户端本身不做自动重试；max_retries > 0 时仅对没有请求体的请求
    在连接错误/超时时重试，上传流无法重放。
    """

    def __init__(
        self,
        timeout: float = 15.0,
        verify_ssl: bool = True,
        user_agent: Optional[str] = None,
        chunk_size: int = 64 * 1024,
        max_retries: int = 0,
        retry_delay: float = 1.0,
        client: Optional[httpx.Client] = None,
        debug: bool = False,
    ):
        """
        初始化传输层

        Args:
            timeout: 请求超时时间（秒）
            verify_ssl: 是否验证SSL证书
            user_agent: User-Agent 请求头
            chunk_size: 上传分块大小（字节）
            max_retries: 连接级最大重试次数
            retry_delay: 重试延迟（秒）
            client: 外部提供的 httpx.Client（测试时可注入 MockTransport）
            debug: 是否记录请求/响应调试日志
        """
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.user_agent = user_agent
        self.chunk_size = chunk_size
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.debug = debug
        self._client = client

    @property
    def client(self) -> httpx.Client:
        """获取或创建HTTP客户端"""
        if self._client is None:
            self._client = httpx.Client(
                timeout=httpx.Timeout(self.timeout),
                verify=self.verify_ssl,
                follow_redirects=False,
            )
        return self._client

    def close(self) -> None:
        """关闭HTTP客户端"""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _build_request(self, request: CloudFilesRequest) -> httpx.Request:
        headers = httpx.Headers(request.headers)
        if self.user_agent and USER_AGENT not in headers:
            headers[USER_AGENT] = self.user_agent
        if request.content_type:
            headers[CONTENT_TYPE] = request.content_type

        content: Union[bytes, object, None] = None
        if request.has_content:
            if request.content_length is not None:
                headers[CONTENT_LENGTH] = str(request.content_length)
            if request.allow_write_stream_buffering:
                content = b"".join(request.iter_content(self.chunk_size))
            else:
                content = request.iter_content(self.chunk_size)
        elif request.method in ("PUT", "POST", "COPY"):
            headers[CONTENT_LENGTH] = "0"

        return self.client.build_request(
            method=request.method,
            url=request.uri,
            headers=headers,
            content=content,
        )

    def _log_request(self, request: CloudFilesRequest) -> None:
        """记录请求日志（令牌与密钥被遮盖）"""
        if self.debug:
            logger.debug(
                "Storage request",
                method=request.method,
                url=request.uri,
                headers=mask_headers(request.headers),
                content_type=request.content_type,
                content_length=request.content_length,
            )

    def _log_response(self, request: CloudFilesRequest, response: httpx.Response, elapsed_ms: float) -> None:
        """记录响应日志"""
        if self.debug:
            logger.debug(
                "Storage response",
                method=request.method,
                url=request.uri,
                status=response.status_code,
                elapsed_ms=f"{elapsed_ms:.2f}",
            )

    def _send_once(self, request: CloudFilesRequest, stream: bool) -> RawResponse:
        start_time = datetime.now()
        http_request = self._build_request(request)
        response = self.client.send(http_request, stream=stream)
        elapsed = (datetime.now() - start_time).total_seconds() * 1000
        self._log_response(request, response, elapsed)

        if stream:
            def _chunks(chunk_size: int):
                try:
                    yield from response.iter_bytes(chunk_size)
                except httpx.TransportError as e:
                    raise TransportError(f"Download stream failed: {e}") from e

            return RawResponse(
                status_code=response.status_code,
                headers=response.headers,
                reason=response.reason_phrase,
                _stream=_chunks,
                _close=response.close,
            )

        return RawResponse(
            status_code=response.status_code,
            headers=response.headers,
            body=response.content,
            reason=response.reason_phrase,
        )

    def send(self, request: CloudFilesRequest, *, stream: bool = False) -> RawResponse:
        """
        发送请求

        Args:
            request: 已由请求描述符填充的请求
            stream: 为 True 时不读取响应体，由调用方迭代/关闭

        Returns:
            RawResponse: 原始响应（状态码、响应头、响应体）

        Raises:
            TransportError: 连接重置、超时、上传流中途关闭等连接级错误
        """
        self._log_request(request)
        attempts = 1 if request.has_content else self.max_retries + 1

        retrying = Retrying(
            reraise=True,
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(
                multiplier=self.retry_delay,
                min=self.retry_delay,
                max=self.retry_delay * 8
            ),
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
            before_sleep=before_sleep_log(logging.getLogger(__name__), logging.WARNING)
        )

        try:
            for attempt in retrying:
                with attempt:
                    return self._send_once(request, stream)
        except httpx.TimeoutException as exc:
            raise TransportError(f"Request timeout after {self.timeout}s: {request.method} {request.uri}") from exc
        except httpx.TransportError as exc:
            raise TransportError(f"Network error: {exc}") from exc
        except httpx.StreamError as exc:
            raise TransportError(f"Stream error: {exc}") from exc
