"""
Tests for the gunicorn deployment config.
"""
import runpy
from pathlib import Path
from unittest.mock import Mock, patch

CONFIG_PATH = Path(__file__).resolve().parent.parent / 'deployment' / 'gunicorn' / 'gunicorn_config.py'


def test_binds_port_from_environment(monkeypatch):
    monkeypatch.setenv('PORT', '8123')

    config = runpy.run_path(str(CONFIG_PATH))

    assert config['bind'] == '0.0.0.0:8123'


def test_default_port(monkeypatch):
    monkeypatch.delenv('PORT', raising=False)

    config = runpy.run_path(str(CONFIG_PATH))

    assert config['bind'] == '0.0.0.0:5000'


def test_worker_exit_closes_database():
    config = runpy.run_path(str(CONFIG_PATH))
    server, worker = Mock(), Mock()

    with patch('contact.store.MessageStore.close') as close:
        config['worker_exit'](server, worker)

    close.assert_called_once_with()
    worker.log.exception.assert_not_called()
