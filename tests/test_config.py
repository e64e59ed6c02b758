import pytest

from sitecrawler.utils import config as config_module
from sitecrawler.utils.config import DEFAULT_MAX_CONCURRENCY, DEFAULT_USER_AGENT, load_config


def write_config(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text)
    return str(path)


def test_defaults_without_config_file():
    config = load_config()

    assert config.crawler.max_concurrency == DEFAULT_MAX_CONCURRENCY == 100
    assert config.crawler.user_agent == DEFAULT_USER_AGENT
    assert config.crawler.request_timeout is None
    assert config.crawler.startup_probe is True
    assert config.logging.level == 'INFO'
    assert config.monitoring.metrics_enabled is False
    assert config.output.file is None
    assert config_module.get_config() is config


def test_partial_file_overrides_only_given_keys(tmp_path):
    path = write_config(tmp_path, """
crawler:
  max_concurrency: 8
  request_timeout: 2.5
logging:
  level: debug
""")
    config = load_config(path)

    assert config.crawler.max_concurrency == 8
    assert config.crawler.request_timeout == 2.5
    assert config.crawler.user_agent == DEFAULT_USER_AGENT
    assert config.logging.level == 'debug'


def test_empty_file_gives_defaults(tmp_path):
    config = load_config(write_config(tmp_path, ""))
    assert config.crawler.max_concurrency == DEFAULT_MAX_CONCURRENCY


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "absent.yaml"))


@pytest.mark.parametrize("text", [
    "unknown_section: {}\n",
    "crawler:\n  seed_urls: []\n",
    "crawler: 5\n",
    "- just\n- a list\n",
    "crawler:\n  max_concurrency: 0\n",
    "crawler:\n  request_timeout: -1\n",
    "logging:\n  level: LOUD\n",
    "monitoring:\n  prometheus_port: 70000\n",
    "logging:\n  level: 10\n",
    "crawler:\n  max_concurrency: 'many'\n",
    "crawler:\n  startup_probe: 1\n",
    "crawler:\n  request_timeout: true\n",
    "output:\n  file: 42\n",
])
def test_invalid_configuration_is_rejected(tmp_path, text):
    with pytest.raises(ValueError):
        load_config(write_config(tmp_path, text))


def test_get_config_before_load_raises():
    manager = config_module.ConfigManager()
    with pytest.raises(ValueError):
        manager.config


def test_integer_timeout_is_accepted_for_float_field(tmp_path):
    config = load_config(write_config(tmp_path, "crawler:\n  request_timeout: 3\n"))
    assert config.crawler.request_timeout == 3
