from ccswitch.apps.app_id import AppType
from ccswitch.apps.codex.mapper import CodexCredentialMapper, CodexMCPMapper
from ccswitch.apps.common.models import MCPServerDTO, MCPServerType


def test_codex_mapper_maps_env_and_headers_to_common() -> None:
    mapped = CodexMCPMapper().to_common(
        {
            "remote": {
                "url": "https://example.com/mcp",
                "bearer_token_env_var": "API_TOKEN",
                "http_headers": {"X-Static": "1"},
                "env_http_headers": {"X-Key": "XKEY"},
            },
            "local": {
                "command": "npx",
                "args": ["-y", "demo"],
                "env_vars": ["TOKEN"],
                "env": {"PLAIN": "v"},
            },
            "invalid": {"foo": "bar"},
        }
    )

    assert set(mapped) == {"remote", "local"}
    assert mapped["remote"].headers == {
        "X-Static": "1",
        "X-Key": "${XKEY}",
        "Authorization": "Bearer ${API_TOKEN}",
    }
    assert mapped["local"].env == {"TOKEN": "${TOKEN}", "PLAIN": "v"}


def test_codex_mapper_splits_env_references_back_out() -> None:
    mapped = CodexMCPMapper().from_common(
        {
            "remote": MCPServerDTO(
                name="remote",
                type=MCPServerType.HTTP,
                url="https://example.com/mcp",
                headers={
                    "Authorization": "Bearer ${API_TOKEN}",
                    "X-Key": "${XKEY}",
                    "X-Static": "1",
                },
            ),
            "local": MCPServerDTO(
                name="local",
                type=MCPServerType.STDIO,
                command="npx",
                env={"TOKEN": "${TOKEN}", "PLAIN": "v"},
            ),
        }
    )

    assert mapped["remote"] == {
        "url": "https://example.com/mcp",
        "bearer_token_env_var": "API_TOKEN",
        "http_headers": {"X-Static": "1"},
        "env_http_headers": {"X-Key": "XKEY"},
    }
    assert mapped["local"] == {
        "command": "npx",
        "env_vars": ["TOKEN"],
        "env": {"PLAIN": "v"},
    }


def test_codex_credentials_select_managed_provider_and_keep_other_keys(
    make_provider,
) -> None:
    payload = {
        "model_provider": "openai",
        "approval_policy": "never",
        "model_providers": {
            "ccswitch": {"env_key": "OPENAI_API_KEY", "wire_api": "chat"},
            "azure": {"name": "Azure", "base_url": "https://azure.example.com"},
        },
    }
    provider = make_provider(AppType.CODEX, model="gpt-5-codex")

    CodexCredentialMapper().apply(payload, provider)

    assert payload["model_provider"] == "ccswitch"
    assert payload["model"] == "gpt-5-codex"
    assert payload["approval_policy"] == "never"
    assert payload["model_providers"]["azure"] == {
        "name": "Azure",
        "base_url": "https://azure.example.com",
    }
    assert payload["model_providers"]["ccswitch"] == {
        "wire_api": "chat",
        "name": "fast-api",
        "base_url": "https://api.example.com",
        "experimental_bearer_token": provider.api_key,
    }


def test_codex_credentials_read_follows_selected_provider() -> None:
    live = CodexCredentialMapper().read(
        {
            "model": "o3",
            "model_provider": "azure",
            "model_providers": {
                "azure": {
                    "base_url": "https://azure.example.com",
                    "experimental_bearer_token": "az-key",
                }
            },
        }
    )

    assert live.api_key == "az-key"
    assert live.base_url == "https://azure.example.com"
    assert live.model == "o3"


def test_codex_credentials_clear_model_when_provider_has_none(make_provider) -> None:
    payload = {"model": "old-model"}

    CodexCredentialMapper().apply(payload, make_provider(AppType.CODEX))

    assert "model" not in payload
