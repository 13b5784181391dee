import json

import httpx
import pytest

from rideops.core.config import settings
from rideops.core.exceptions import ConfigurationError, IdentityProviderError
from rideops.services.identity import DatabaseIdentityProvider, SupabaseIdentityProvider, check_identity_config


async def test_database_provider_lifecycle(db):
    provider = DatabaseIdentityProvider(db)

    created = await provider.create_identity(
        "Nina@Example.com", "Pass-word-9", {"name": "Nina", "user_type": "driver"}
    )
    assert created.email == "nina@example.com"
    assert created.email_confirmed

    found = await provider.find_by_email("NINA@example.com")
    assert found.id == created.id
    assert found.metadata["user_type"] == "driver"

    assert (await provider.authenticate("nina@example.com", "Pass-word-9")).id == created.id
    assert await provider.authenticate("nina@example.com", "wrong") is None

    await provider.delete_identity(created.id)
    assert await provider.find_by_email("nina@example.com") is None


async def test_database_provider_rejects_duplicates(db):
    provider = DatabaseIdentityProvider(db)
    await provider.create_identity("sam@example.com", "Pass-word-9", {})

    with pytest.raises(IdentityProviderError, match="already been registered"):
        await provider.create_identity("sam@example.com", "Other-pass-1", {})


def test_supabase_provider_requires_credentials():
    with pytest.raises(ConfigurationError):
        SupabaseIdentityProvider("", "")


def test_identity_config_checked_only_for_supabase(monkeypatch):
    monkeypatch.setattr(settings, "SUPABASE_URL", "")
    monkeypatch.setattr(settings, "SUPABASE_SERVICE_ROLE_KEY", "")

    monkeypatch.setattr(settings, "IDENTITY_BACKEND", "database")
    check_identity_config()

    monkeypatch.setattr(settings, "IDENTITY_BACKEND", "supabase")
    with pytest.raises(ConfigurationError, match="SUPABASE_URL"):
        check_identity_config()

    monkeypatch.setattr(settings, "SUPABASE_URL", "https://project.supabase.co")
    monkeypatch.setattr(settings, "SUPABASE_SERVICE_ROLE_KEY", "service-key")
    check_identity_config()


def supabase(handler):
    return SupabaseIdentityProvider(
        "https://project.supabase.test",
        "service-key",
        transport=httpx.MockTransport(handler),
    )


async def test_supabase_create_and_delete():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.method == "POST":
            body = json.loads(request.content)
            assert body["email_confirm"] is True
            return httpx.Response(200, json={
                "id": "uuid-1",
                "email": body["email"],
                "user_metadata": body["user_metadata"],
                "email_confirmed_at": "2026-10-19T10:00:00Z",
            })
        return httpx.Response(200, json={})

    provider = supabase(handler)
    identity = await provider.create_identity("kim@example.com", "pw-12345", {"user_type": "customer"})
    await provider.delete_identity(identity.id)

    assert identity.id == "uuid-1"
    assert identity.metadata == {"user_type": "customer"}
    assert requests[0].url.path == "/auth/v1/admin/users"
    assert requests[0].headers["apikey"] == "service-key"
    assert requests[1].method == "DELETE"
    assert requests[1].url.path == "/auth/v1/admin/users/uuid-1"


async def test_supabase_error_message_is_passed_through():
    def handler(request):
        return httpx.Response(422, json={"msg": "A user with this email address has already been registered"})

    with pytest.raises(IdentityProviderError, match="already been registered"):
        await supabase(handler).create_identity("kim@example.com", "pw-12345", {})


async def test_supabase_find_by_email_pages_through_users():
    def handler(request):
        page = int(request.url.params["page"])
        per_page = int(request.url.params["per_page"])
        if page == 1:
            users = [{"id": f"u{i}", "email": f"user{i}@example.com"} for i in range(per_page)]
        else:
            users = [{"id": "target", "email": "Kim@Example.com"}]
        return httpx.Response(200, json={"users": users})

    found = await supabase(handler).find_by_email("kim@example.com")
    assert found.id == "target"


async def test_supabase_authenticate():
    def handler(request):
        body = json.loads(request.content)
        if body["password"] == "right":
            return httpx.Response(200, json={"access_token": "t", "user": {"id": "u1", "email": body["email"]}})
        return httpx.Response(400, json={"error_description": "Invalid login credentials"})

    provider = supabase(handler)
    assert (await provider.authenticate("kim@example.com", "right")).id == "u1"
    assert await provider.authenticate("kim@example.com", "wrong") is None
