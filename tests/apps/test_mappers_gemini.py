from ccswitch.apps.app_id import AppType
from ccswitch.apps.gemini.mapper import GeminiCredentialMapper, GeminiMCPMapper


def test_gemini_credentials_set_top_level_keys(make_provider) -> None:
    payload = {"theme": "Dracula", "model": "gemini-1.5-pro"}

    GeminiCredentialMapper().apply(
        payload, make_provider(AppType.GEMINI, model="gemini-2.5-pro")
    )

    assert payload == {
        "theme": "Dracula",
        "model": "gemini-2.5-pro",
        "apiKey": payload["apiKey"],
        "baseUrl": "https://api.example.com",
    }
    assert GeminiCredentialMapper().read(payload).model == "gemini-2.5-pro"


def test_gemini_mapper_reads_streamable_http_url() -> None:
    mapped = GeminiMCPMapper().to_common(
        {"search": {"httpUrl": "https://search.example.com/mcp", "headers": {"A": 1}}}
    )

    assert mapped["search"].url == "https://search.example.com/mcp"
    assert mapped["search"].headers == {"A": "1"}


def test_gemini_mapper_round_trips_stdio_servers() -> None:
    mapper = GeminiMCPMapper()
    payload = {"fs": {"command": "npx", "args": ["fs-mcp"], "env": {"ROOT": "/"}}}

    assert mapper.from_common(mapper.to_common(payload)) == payload
