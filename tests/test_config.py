import yaml

from doctainr.config import (
    DEFAULT_DOCKER_HOST, AppConfig, ConfigManager, EngineConfig,
    resolve_docker_host, use_mock_engine,
)


def test_missing_config_writes_defaults(tmp_path):
    manager = ConfigManager(config_dir=tmp_path)

    assert manager.config_file.exists()
    written = yaml.safe_load(manager.config_file.read_text())
    assert written["sync"]["call_timeout"] == 30.0
    assert written["scheduler"]["containers_interval"] == 1.0
    assert manager.get_config() == AppConfig()


def test_user_values_override_defaults(tmp_path):
    (tmp_path / "config.yaml").write_text(yaml.safe_dump({
        "engine": {"host": "tcp://10.0.0.5:2375", "mode": "mock"},
        "sync": {"dedupe_refreshes": True, "call_timeout": None},
        "logging": {"level": "debug", "bogus": 1},
    }))

    manager = ConfigManager(config_dir=tmp_path)
    config = manager.get_config()

    assert config.engine.host == "tcp://10.0.0.5:2375"
    assert config.engine.mode == "mock"
    assert config.sync.dedupe_refreshes is True
    assert config.sync.call_timeout is None
    assert config.scheduler.enabled is True
    assert manager.get_log_level() == "DEBUG"
    assert not hasattr(config.logging, "bogus")


def test_unknown_engine_mode_falls_back_to_live(tmp_path):
    (tmp_path / "config.yaml").write_text("engine:\n  mode: remote\n")

    assert ConfigManager(config_dir=tmp_path).get_config().engine.mode == "live"


def test_invalid_yaml_uses_defaults(tmp_path):
    (tmp_path / "config.yaml").write_text("engine: [unclosed\n")

    assert ConfigManager(config_dir=tmp_path).get_config() == AppConfig()


def test_non_mapping_config_uses_defaults(tmp_path):
    (tmp_path / "config.yaml").write_text("- just\n- a list\n")

    assert ConfigManager(config_dir=tmp_path).get_config() == AppConfig()


def test_config_dir_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("DOCTAINR_CONFIG_DIR", str(tmp_path / "elsewhere"))

    manager = ConfigManager()
    assert manager.config_file == tmp_path / "elsewhere" / "config.yaml"


def test_docker_host_resolution_order(monkeypatch):
    assert resolve_docker_host(EngineConfig()) == DEFAULT_DOCKER_HOST
    assert resolve_docker_host(EngineConfig(host="tcp://cfg:2375")) == "tcp://cfg:2375"

    monkeypatch.setenv("DOCKER_HOST", "unix:///run/user/1000/docker.sock")
    assert resolve_docker_host(EngineConfig(host="tcp://cfg:2375")) == "unix:///run/user/1000/docker.sock"


def test_mock_engine_selection(monkeypatch):
    assert use_mock_engine(EngineConfig()) is False
    assert use_mock_engine(EngineConfig(mode="mock")) is True

    monkeypatch.setenv("DOCTAINR_MOCK", "1")
    assert use_mock_engine(EngineConfig()) is True


def test_values_are_converted_to_field_types(tmp_path):
    (tmp_path / "config.yaml").write_text(yaml.safe_dump({
        "scheduler": {"containers_interval": "2", "others_interval": "soon", "enabled": "yes"},
        "logging": {"max_size_mb": 20.0},
        "sync": {"call_timeout": 10},
        "engine": {"connect_timeout": None},
    }))

    config = ConfigManager(config_dir=tmp_path).get_config()

    assert config.scheduler.containers_interval == 2.0
    assert config.scheduler.others_interval == 5.0
    assert config.scheduler.enabled is True
    assert config.logging.max_size_mb == 20
    assert isinstance(config.sync.call_timeout, float)
    assert config.engine.connect_timeout == 5.0
