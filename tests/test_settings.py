"""Tests for environment-driven settings parsing."""

import pytest
from pydantic import ValidationError

from tickety.core.settings import Settings


def test_defaults() -> None:
    config = Settings(SECRET_KEY="x", SIWE_CHAIN_IDS="", ADMIN_ADDRESSES="", SIWE_DOMAIN=None)
    assert config.nonce_backend == "memory"
    assert config.nonce_ttl_seconds == 300
    assert config.access_token_expire_minutes == 60 * 24
    assert config.jwt_algorithm == "HS256"
    assert config.siwe_chain_ids == []
    assert config.admin_addresses == []


def test_comma_separated_lists() -> None:
    config = Settings(
        SECRET_KEY="x",
        SIWE_CHAIN_IDS="1, 80002",
        ADMIN_ADDRESSES=" 0xAbC0000000000000000000000000000000000001 ,0xdef0000000000000000000000000000000000002,",
    )
    assert config.siwe_chain_ids == [1, 80002]
    assert config.admin_addresses == [
        "0xabc0000000000000000000000000000000000001",
        "0xdef0000000000000000000000000000000000002",
    ]


def test_json_lists() -> None:
    config = Settings(SECRET_KEY="x", SIWE_CHAIN_IDS="[137]", ADMIN_ADDRESSES='["0xAB"]')
    assert config.siwe_chain_ids == [137]
    assert config.admin_addresses == ["0xab"]


def test_environment_variables(monkeypatch) -> None:
    monkeypatch.setenv("NONCE_BACKEND", "redis")
    monkeypatch.setenv("NONCE_TTL_SECONDS", "90")
    monkeypatch.setenv("SIWE_CHAIN_IDS", "10,137")
    config = Settings(SECRET_KEY="x")
    assert config.nonce_backend == "redis"
    assert config.nonce_ttl_seconds == 90
    assert config.siwe_chain_ids == [10, 137]


@pytest.mark.parametrize(
    "overrides",
    [
        {"NONCE_BACKEND": "memcached"},
        {"NONCE_TTL_SECONDS": 0},
        {"SIWE_CHAIN_IDS": "polygon"},
    ],
)
def test_invalid_values(overrides: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        Settings(SECRET_KEY="x", **overrides)
