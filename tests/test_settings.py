from remote_config.common.settings import ProviderSettings, load_settings, settings_from_dict


def test_defaults():
    settings = ProviderSettings()

    assert settings.cache.timeout_s == 180
    assert settings.cache.key == "app_config"
    assert settings.service.health_port == 8082


def test_load_from_yaml(tmp_path, monkeypatch):
    monkeypatch.delenv("REMOTE_CONFIG_URL", raising=False)
    monkeypatch.delenv("REMOTE_CONFIG_STATE_DIR", raising=False)
    path = tmp_path / "config.yaml"
    path.write_text(
        "server:\n"
        "  url: https://config.example.org/app.json\n"
        "  timeout_s: 5\n"
        "cache:\n"
        "  dir: /tmp/rc\n"
        "  timeout_s: 60\n"
        "parser:\n"
        "  required_keys: [features]\n",
        encoding="utf-8",
    )

    settings = load_settings(str(path))

    assert settings.server.url == "https://config.example.org/app.json"
    assert settings.server.timeout_s == 5.0
    assert settings.cache.dir == "/tmp/rc"
    assert settings.cache.timeout_s == 60
    assert settings.parser.required_keys == ["features"]
    assert settings.source_path == str(path)
    assert settings.validate() == (True, [])


def test_environment_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("REMOTE_CONFIG_URL", "https://override.example.org/c.json")
    monkeypatch.setenv("REMOTE_CONFIG_STATE_DIR", str(tmp_path))

    settings = load_settings(str(tmp_path / "missing.yaml"))

    assert settings.server.url == "https://override.example.org/c.json"
    assert settings.cache.dir == str(tmp_path)


def test_invalid_yaml_falls_back_to_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("REMOTE_CONFIG_URL", raising=False)
    path = tmp_path / "config.yaml"
    path.write_text("server: [unclosed", encoding="utf-8")

    settings = load_settings(str(path))

    assert settings.server.url == ""


def test_validate_reports_errors():
    settings = settings_from_dict({
        "server": {"url": "ftp://nope", "timeout_s": 0},
        "service": {"health_port": 70000},
    })

    is_valid, errors = settings.validate()

    assert is_valid is False
    assert "Invalid server.url: ftp://nope" in errors
    assert "server.timeout_s must be positive" in errors
    assert "Invalid service.health_port" in errors
