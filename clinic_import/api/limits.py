from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from clinic_import.logging.logger import Log
from clinic_import.upload.exceptions import PayloadTooLarge
from clinic_import.upload.storage import too_large_message


class UploadSizeLimitMiddleware:
    """Rejects upload requests over the size bound before the form is parsed.

    A declared Content-Length over the bound is refused without reading the
    body. Otherwise received bytes are counted and the request is cut off at
    the first chunk that crosses the bound; whatever response the app
    produces after that is replaced by the 413.
    """

    def __init__(self, app: ASGIApp, path: str, max_body_bytes: int) -> None:
        self.app = app
        self.path = path
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] != "POST" or scope["path"] != self.path:
            await self.app(scope, receive, send)
            return

        declared = _content_length(scope)
        if declared is not None and declared > self.max_body_bytes:
            Log.warning(
                f"Upload refused: declared {declared} bytes",
                limit=self.max_body_bytes,
            )
            await self._reject(scope, receive, send)
            return

        received = 0
        exceeded = False
        started = False

        async def limited_receive() -> Message:
            nonlocal received, exceeded
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    exceeded = True
                    raise PayloadTooLarge(too_large_message(self.max_body_bytes))
            return message

        async def guarded_send(message: Message) -> None:
            nonlocal started
            if exceeded:
                if not started:
                    started = True
                    await self._reject(scope, receive, send)
                return
            if message["type"] == "http.response.start":
                started = True
            await send(message)

        try:
            await self.app(scope, limited_receive, guarded_send)
        except PayloadTooLarge:
            if started:
                raise
            started = True
            await self._reject(scope, receive, send)

        if exceeded:
            Log.warning(
                f"Upload cut off after {received} bytes",
                limit=self.max_body_bytes,
            )

    async def _reject(self, scope: Scope, receive: Receive, send: Send) -> None:
        response = JSONResponse(
            status_code=PayloadTooLarge.status_code,
            content={"success": False, "message": too_large_message(self.max_body_bytes)},
        )
        await response(scope, receive, send)


def _content_length(scope: Scope) -> int | None:
    for key, value in scope.get("headers", []):
        if key == b"content-length":
            raw = value.decode("latin-1")
            return int(raw) if raw.isdigit() else None
    return None