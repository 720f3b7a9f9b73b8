from starlette.types import ASGIApp, Message, Receive, Scope, Send


class SecurityHeadersMiddleware:
    """Apply default security headers to every HTTP response.

    Resources are served cross-origin to the SPA, so CORP is relaxed to
    ``cross-origin``; everything else stays strict.
    """

    def __init__(
        self,
        app: ASGIApp,
        enable_hsts: bool = False,
        content_security_policy: str | None = None,
    ) -> None:
        self.app = app
        self.enable_hsts = enable_hsts
        self.content_security_policy = content_security_policy

    def _defaults(self) -> list[tuple[bytes, bytes]]:
        defaults: list[tuple[bytes, bytes]] = [
            (b"x-content-type-options", b"nosniff"),
            (b"x-frame-options", b"DENY"),
            (b"referrer-policy", b"no-referrer"),
            (b"x-xss-protection", b"0"),
            (b"cross-origin-opener-policy", b"same-origin"),
            (b"cross-origin-resource-policy", b"cross-origin"),
        ]
        if self.enable_hsts:
            defaults.append((b"strict-transport-security", b"max-age=63072000; includeSubDomains"))
        if self.content_security_policy:
            defaults.append((b"content-security-policy", self.content_security_policy.encode()))
        return defaults

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                existing_keys = {key.lower() for key, _ in message.get("headers", [])}
                new_headers = list(message.get("headers", []))
                for key, value in self._defaults():
                    if key not in existing_keys:
                        new_headers.append((key, value))
                message["headers"] = new_headers
            await send(message)

        await self.app(scope, receive, send_with_headers)
