# app/services/chat_client.py
from typing import Iterator

import requests

from app.utils.retry import http_retry
from app.utils.settings import AI_GATEWAY_URL, AI_API_KEY, AI_MODEL, HTTP_TIMEOUT_SECONDS
from app.utils.logging import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = """Bạn là trợ lý AI chuyên nghiệp của TECH SCREEN - cửa hàng chuyên về màn hình điện thoại, laptop và máy tính.

Nhiệm vụ của bạn:
- Tư vấn khách hàng về các loại màn hình phù hợp với nhu cầu
- Giải đáp thắc mắc về sản phẩm, giá cả, chất lượng
- Hướng dẫn cách chọn màn hình phù hợp
- Giúp khách hàng hiểu về các thông số kỹ thuật: độ phân giải, tần số quét, kích thước, công nghệ màn hình

Phong cách giao tiếp: thân thiện, ngắn gọn, rõ ràng bằng tiếng Việt.

Lưu ý: Nếu khách hỏi về giá cụ thể hoặc tồn kho, hãy khuyến khích họ xem trang sản phẩm hoặc liên hệ trực tiếp."""

RATE_LIMIT_MESSAGE = "Quá nhiều yêu cầu, vui lòng thử lại sau."
BILLING_MESSAGE = "Vui lòng nạp thêm credits để sử dụng tính năng này."
UPSTREAM_MESSAGE = "Lỗi kết nối AI"


class ChatUpstreamError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ChatClient:
    def __init__(
        self,
        gateway_url: str | None = None,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
    ):
        self.gateway_url = gateway_url or AI_GATEWAY_URL
        self.api_key = api_key if api_key is not None else AI_API_KEY
        self.model = model or AI_MODEL
        self.timeout = timeout

    @http_retry()
    def _open_stream(self, messages: list[dict]) -> requests.Response:
        logger.info(f"ChatClient POST {self.gateway_url} ({len(messages)} messages)")
        return requests.post(
            self.gateway_url,
            json={
                "model": self.model,
                "messages": [{"role": "system", "content": SYSTEM_PROMPT}, *messages],
                "stream": True,
            },
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=self.timeout,
            stream=True,
        )

    def stream_chat(self, messages: list[dict]) -> Iterator[bytes]:
        """
        Otwiera strumien i zwraca iterator bajtow SSE.
        Bledy upstream sa rzucane przed pierwszym bajtem.
        """
        if not self.api_key:
            raise ChatUpstreamError(500, "AI_API_KEY is not configured")

        try:
            resp = self._open_stream(messages)
        except requests.RequestException as e:
            logger.error(f"AI gateway unreachable: {e}")
            raise ChatUpstreamError(500, UPSTREAM_MESSAGE) from e

        if resp.status_code == 429:
            resp.close()
            raise ChatUpstreamError(429, RATE_LIMIT_MESSAGE)
        if resp.status_code == 402:
            resp.close()
            raise ChatUpstreamError(402, BILLING_MESSAGE)
        if not resp.ok:
            logger.error(f"AI gateway error: {resp.status_code} {resp.text}")
            resp.close()
            raise ChatUpstreamError(500, UPSTREAM_MESSAGE)

        return self._iter_body(resp)

    @staticmethod
    def _iter_body(resp: requests.Response) -> Iterator[bytes]:
        try:
            for chunk in resp.iter_content(chunk_size=None):
                if chunk:
                    yield chunk
        finally:
            resp.close()
