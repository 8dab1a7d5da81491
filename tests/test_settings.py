from core.settings import DEFAULT_CACHE_TTL, cache_ttl, load_store_settings, secret_lookup


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://demo.supabase.co/")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
    monkeypatch.setenv("SUPABASE_TIMEOUT", "4.5")
    settings = load_store_settings()
    assert settings.url == "https://demo.supabase.co"
    assert settings.key == "anon"
    assert settings.timeout == 4.5
    assert settings.configured


def test_settings_accept_legacy_key_name(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://demo.supabase.co")
    monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
    monkeypatch.setenv("SUPABASE_KEY", "service")
    assert load_store_settings().key == "service"


def test_missing_settings_are_not_configured(monkeypatch):
    for name in ("SUPABASE_URL", "SUPABASE_ANON_KEY", "SUPABASE_KEY", "SUPABASE_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    settings = load_store_settings()
    assert not settings.configured
    assert settings.timeout == 10.0


def test_cache_ttl(monkeypatch):
    monkeypatch.delenv("GANADO_CACHE_TTL", raising=False)
    assert cache_ttl() == DEFAULT_CACHE_TTL
    monkeypatch.setenv("GANADO_CACHE_TTL", "15")
    assert cache_ttl() == 15


def test_secret_lookup():
    assert secret_lookup({"url": "x"}, "url") == "x"
    assert secret_lookup({}, "url", "d") == "d"
    assert secret_lookup(None, "url", "d") == "d"
