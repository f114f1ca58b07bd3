import pytest
import yaml

from autoapply.ai import (
    PURPOSE_DOCUMENT,
    PURPOSE_FIELD,
    ProviderSettings,
    WaterfallSettings,
    create_provider,
    create_secondary_waterfalls,
    create_waterfall,
    get_waterfall,
    load_waterfall_settings,
    save_waterfall_settings,
)
from autoapply.ai.errors import ProviderNotConfiguredError
from autoapply.ai.openai_provider import HuggingFaceProvider, OpenAICompatibleProvider


def test_defaults_come_from_presets():
    settings = load_waterfall_settings()

    names = [p.name for p in settings.providers]
    assert names == ["openrouter", "huggingface", "nvidia", "groq"]
    assert settings.primary == "openrouter"
    assert settings.secondaries == ["huggingface", "nvidia", "groq"]
    assert settings.validate() is None


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("GROQ_MODELS", "a, b")
    monkeypatch.setenv("FIELD_REQUEST_TIMEOUT", "4")
    monkeypatch.setenv("RATE_LIMIT_BACKOFF_BASE", "1.5")
    monkeypatch.setenv("RATE_LIMIT_BACKOFF_MAX", "not-a-number")

    settings = load_waterfall_settings()

    assert settings.get_provider("groq").models == ["a", "b"]
    assert settings.field_timeout == 4.0
    assert settings.backoff_base == 1.5
    assert settings.backoff_max == 10.0


def test_api_key_from_env(monkeypatch):
    settings = load_waterfall_settings()
    openrouter = settings.get_provider("openrouter")
    assert not openrouter.is_configured

    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-test")
    assert openrouter.resolve_api_key() == "sk-test"
    assert openrouter.is_configured


def test_build_descriptors_orders_by_tier():
    settings = WaterfallSettings(
        providers=[
            ProviderSettings(name="b", models=["b0", "b1"], tier_offset=100, field_timeout=3),
            ProviderSettings(name="a", models=["a0"], tier_offset=0, rate_limited_models=["a0"]),
        ],
        primary="a",
        secondaries=[],
    )

    descriptors = settings.build_descriptors(PURPOSE_FIELD)

    assert [d.descriptor_id for d in descriptors] == ["a:a0", "b:b0", "b:b1"]
    assert [d.tier_rank for d in descriptors] == [0, 100, 101]
    assert descriptors[0].is_rate_limited
    assert descriptors[0].request_timeout == settings.field_timeout
    assert descriptors[1].request_timeout == 3.0

    documents = settings.build_descriptors(PURPOSE_DOCUMENT, ["b"])
    assert [d.model_id for d in documents] == ["b0", "b1"]
    assert all(d.request_timeout == settings.document_timeout for d in documents)


@pytest.mark.parametrize("changes, message", [
    ({"field_timeout": 0}, "Timeouts"),
    ({"backoff_base": 5, "backoff_max": 1}, "Backoff"),
    ({"primary": "missing"}, "Unknown provider"),
])
def test_validate_rejects_bad_settings(changes, message):
    settings = load_waterfall_settings()
    for key, value in changes.items():
        setattr(settings, key, value)
    assert message in settings.validate()


def test_yaml_round_trip_never_writes_keys(tmp_path, monkeypatch):
    path = tmp_path / "providers.yaml"
    settings = load_waterfall_settings()
    settings.get_provider("groq").api_key = "secret"
    settings.backoff_max = 8.0

    assert save_waterfall_settings(settings, path)
    assert "secret" not in path.read_text()

    data = yaml.safe_load(path.read_text())
    assert data["version"] == 1

    loaded = load_waterfall_settings(path)
    assert loaded.backoff_max == 8.0
    assert loaded.get_provider("groq").api_key is None

    monkeypatch.setenv("AUTOAPPLY_PROVIDERS_FILE", str(path))
    assert load_waterfall_settings().backoff_max == 8.0


def test_invalid_yaml_falls_back_to_presets(tmp_path):
    path = tmp_path / "providers.yaml"
    path.write_text("providers: [unclosed", encoding="utf-8")

    settings = load_waterfall_settings(path)
    assert settings.get_provider("openrouter") is not None


class TestFactories:
    def test_create_provider_requires_key(self):
        with pytest.raises(ProviderNotConfiguredError):
            create_provider(ProviderSettings(name="x", api_key_env="X_KEY"))

    def test_create_provider_kinds(self):
        openai = create_provider(ProviderSettings(name="o", api_key="k", base_url="https://o/v1"))
        hf = create_provider(ProviderSettings(name="h", kind="huggingface", api_key="k", base_url="https://h"))
        assert isinstance(openai, OpenAICompatibleProvider)
        assert isinstance(hf, HuggingFaceProvider)

        with pytest.raises(ValueError):
            create_provider(ProviderSettings(name="z", kind="carrier-pigeon", api_key="k"))

    def test_unconfigured_providers_are_left_out(self, monkeypatch):
        monkeypatch.setenv("GROQ_API_KEY", "gk")
        waterfall = create_waterfall(PURPOSE_FIELD)
        assert {d.provider_name for d in waterfall.descriptors} == {"groq"}

    def test_document_waterfall_uses_primary_only(self, monkeypatch):
        monkeypatch.setenv("OPENROUTER_API_KEY", "ok")
        monkeypatch.setenv("GROQ_API_KEY", "gk")

        waterfall = create_waterfall(PURPOSE_DOCUMENT)

        assert {d.provider_name for d in waterfall.descriptors} == {"openrouter"}
        assert waterfall.name == "document:openrouter"

    def test_secondary_waterfalls_in_order(self):
        names = [w.name for w in create_secondary_waterfalls()]
        assert names == ["document:huggingface", "document:nvidia", "document:groq"]

    def test_get_waterfall_is_cached_until_settings_change(self, monkeypatch):
        first = get_waterfall(PURPOSE_FIELD)
        assert get_waterfall(PURPOSE_FIELD) is first
        assert get_waterfall(PURPOSE_FIELD, force_reload=True) is not first

        monkeypatch.setenv("GROQ_API_KEY", "gk")
        assert len(get_waterfall(PURPOSE_FIELD)) > 0

    def test_cached_lookups_do_not_reload_settings(self, monkeypatch):
        calls = []

        def counting_load(*args, **kwargs):
            calls.append(1)
            return load_waterfall_settings(*args, **kwargs)

        monkeypatch.setattr("autoapply.ai.load_waterfall_settings", counting_load)

        first = get_waterfall(PURPOSE_FIELD)
        for _ in range(5):
            assert get_waterfall(PURPOSE_FIELD) is first
        assert len(calls) == 1

        get_waterfall(PURPOSE_FIELD, force_reload=True)
        assert len(calls) == 2

    def test_settings_file_change_rebuilds(self, tmp_path, monkeypatch):
        path = tmp_path / "providers.yaml"
        monkeypatch.setenv("AUTOAPPLY_PROVIDERS_FILE", str(path))
        monkeypatch.setenv("GROQ_API_KEY", "gk")

        first = get_waterfall(PURPOSE_FIELD)
        assert first.backoff_delay(10) == 10.0

        settings = load_waterfall_settings()
        settings.backoff_max = 7.0
        assert save_waterfall_settings(settings, path)

        rebuilt = get_waterfall(PURPOSE_FIELD)
        assert rebuilt is not first
        assert rebuilt.backoff_delay(10) == 7.0
