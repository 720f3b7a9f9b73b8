from uuid import uuid4

import httpx
import pytest

from acrecap.services.identity import IdentityResolver

from conftest import make_settings, make_token


@pytest.mark.asyncio
async def test_valid_token_resolves_identity() -> None:
    resolver = IdentityResolver(make_settings())
    user_id = uuid4()
    token = make_token(
        user_id,
        "asha@example.com",
        phone="919876543210",
        user_metadata={"full_name": "Asha Rao"},
    )

    identity = await resolver.resolve(token)

    assert identity is not None
    assert identity.id == user_id
    assert identity.email == "asha@example.com"
    assert identity.full_name == "Asha Rao"
    assert identity.phone == "919876543210"
    assert identity.source == "token"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "token_kwargs",
    [
        {"secret": "some-other-secret"},
        {"audience": "anon"},
        {"expires_in": -60},
    ],
)
async def test_bad_tokens_resolve_to_none(token_kwargs) -> None:
    resolver = IdentityResolver(make_settings())
    token = make_token(uuid4(), **token_kwargs)
    assert await resolver.resolve(token) is None


@pytest.mark.asyncio
async def test_token_with_non_uuid_subject_is_rejected() -> None:
    resolver = IdentityResolver(make_settings())
    assert await resolver.resolve(make_token("not-a-uuid")) is None


@pytest.mark.asyncio
async def test_garbage_token_is_rejected() -> None:
    resolver = IdentityResolver(make_settings())
    assert await resolver.resolve("definitely.not.ajwt") is None


@pytest.mark.asyncio
async def test_dev_header_ignored_unless_enabled() -> None:
    resolver = IdentityResolver(make_settings())
    assert await resolver.resolve(None, str(uuid4())) is None


@pytest.mark.asyncio
async def test_dev_header_accepted_when_enabled() -> None:
    resolver = IdentityResolver(make_settings(ALLOW_DEV_HEADER=True))
    user_id = uuid4()
    identity = await resolver.resolve(None, str(user_id))
    assert identity is not None
    assert identity.id == user_id
    assert identity.source == "dev_header"
    assert identity.email is None


@pytest.mark.asyncio
async def test_dev_header_must_be_uuid() -> None:
    resolver = IdentityResolver(make_settings(ALLOW_DEV_HEADER=True))
    assert await resolver.resolve(None, "admin") is None


@pytest.mark.asyncio
async def test_token_takes_precedence_over_dev_header() -> None:
    resolver = IdentityResolver(make_settings(ALLOW_DEV_HEADER=True))
    bad_token = make_token(uuid4(), secret="wrong")
    assert await resolver.resolve(bad_token, str(uuid4())) is None


@pytest.mark.asyncio
async def test_no_provider_configured_rejects_tokens() -> None:
    resolver = IdentityResolver(make_settings(SUPABASE_JWT_SECRET=None))
    assert await resolver.resolve(make_token(uuid4())) is None


def _provider_settings():
    return make_settings(
        SUPABASE_JWT_SECRET=None,
        SUPABASE_URL="https://project.supabase.co/",
        SUPABASE_SERVICE_ROLE_KEY="service-key",
    )


@pytest.mark.asyncio
async def test_provider_lookup_resolves_identity() -> None:
    user_id = uuid4()
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["apikey"] = request.headers.get("apikey")
        seen["authorization"] = request.headers.get("authorization")
        return httpx.Response(
            200,
            json={
                "id": str(user_id),
                "email": "neha@example.com",
                "user_metadata": {"full_name": "Neha"},
            },
        )

    resolver = IdentityResolver(_provider_settings(), transport=httpx.MockTransport(handler))
    identity = await resolver.resolve("opaque-token")

    assert identity is not None
    assert identity.id == user_id
    assert identity.full_name == "Neha"
    assert seen["url"] == "https://project.supabase.co/auth/v1/user"
    assert seen["apikey"] == "service-key"
    assert seen["authorization"] == "Bearer opaque-token"


@pytest.mark.asyncio
async def test_provider_rejection_resolves_to_none() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(401, json={"msg": "bad jwt"}))
    resolver = IdentityResolver(_provider_settings(), transport=transport)
    assert await resolver.resolve("opaque-token") is None


@pytest.mark.asyncio
async def test_provider_network_error_resolves_to_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    resolver = IdentityResolver(_provider_settings(), transport=httpx.MockTransport(handler))
    assert await resolver.resolve("opaque-token") is None
