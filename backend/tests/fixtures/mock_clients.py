import asyncio
import json

import httpx

from newlife.services.adapter import AIResponse, TokenUsage


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request and answers from a queue."""

    def __init__(self, *responses):
        self.requests = []
        self.responses = list(responses)
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json=response)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    @property
    def last_body(self) -> dict:
        return json.loads(self.last_request.content)


class FakeAdapter:
    """Adapter double: records requests, replies from a list, can block."""

    provider_name = "fake"
    model = "fake-model"

    def __init__(self, replies=None, error=None):
        self.replies = list(replies or ["ok"])
        self.error = error
        self.requests = []
        self.gate = None

    def build_system_prompt(self, context):
        return f"prompt for {context.pregnancy.mother_name}"

    async def send_message(self, request):
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        content = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        return AIResponse(content=content, usage=TokenUsage.of(10, 5))

    def block(self) -> asyncio.Event:
        self.gate = asyncio.Event()
        return self.gate
