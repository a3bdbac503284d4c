import asyncio

import pytest

from errors import InternalError, Unauthenticated
from repositories.secrets import EnvSecretStore, FileSecretStore, SecretStore
from services.auth import AuthGate, tokens_match
from conftest import API_SECRET


class CountingSecretStore(SecretStore):
    def __init__(self, value: str):
        self.value = value
        self.calls = 0

    async def get(self) -> str:
        self.calls += 1
        return self.value


def test_tokens_match():
    assert tokens_match("abc", "abc")
    assert not tokens_match("abd", "abc")
    assert not tokens_match("abcd", "abc")
    assert not tokens_match("", "abc")
    assert tokens_match("päss", "päss")


@pytest.mark.parametrize("header", ["Bearer s3cret", "s3cret"])
def test_accepts_bearer_or_raw_secret(header):
    asyncio.run(AuthGate(EnvSecretStore("s3cret")).verify(header))


@pytest.mark.parametrize("header", [None, ""])
def test_missing_header(header):
    with pytest.raises(Unauthenticated) as excinfo:
        asyncio.run(AuthGate(EnvSecretStore("s3cret")).verify(header))
    assert excinfo.value.headers == {"WWW-Authenticate": 'Bearer realm="API"'}


@pytest.mark.parametrize("header", ["Bearer s3creT", "Bearer s3cret!", "bearer s3cret", "Basic s3cret"])
def test_wrong_secret(header):
    with pytest.raises(Unauthenticated):
        asyncio.run(AuthGate(EnvSecretStore("s3cret")).verify(header))


def test_secret_is_loaded_once():
    store = CountingSecretStore("s3cret")
    gate = AuthGate(store)

    async def verify_many():
        for _ in range(5):
            await gate.verify("Bearer s3cret")

    asyncio.run(verify_many())
    assert store.calls == 1


def test_unconfigured_secret_never_authenticates():
    gate = AuthGate(EnvSecretStore(""))
    with pytest.raises(InternalError):
        asyncio.run(gate.verify("Bearer "))


def test_file_secret_store_reads_first_line(tmp_path):
    secret_file = tmp_path / "api_secret"
    secret_file.write_text("from-file\nignored\n", encoding="utf-8")
    assert asyncio.run(FileSecretStore(str(secret_file)).get()) == "from-file"


@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"Authorization": "Bearer short"},
        {"Authorization": f"Bearer {'x' * len(API_SECRET)}"},
    ],
)
def test_routes_reject_bad_credentials_with_same_shape(client, repository, headers):
    for method, path in (("GET", "/rest/users"), ("POST", "/query")):
        response = client.request(method, path, headers=headers, json={"query": "SELECT 1"})
        assert response.status_code == 401
        assert set(response.json()) == {"error"}
        assert response.headers["WWW-Authenticate"] == 'Bearer realm="API"'
    assert repository.calls == []


def test_root_is_not_gated(client):
    response = client.get("/")
    assert response.status_code == 200
