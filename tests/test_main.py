from __future__ import annotations

import asyncio
import ipaddress
import logging

import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError

from rtsp_scout import discovery, interfaces, main
from rtsp_scout.interfaces import Subnet
from rtsp_scout.settings import load_settings


def _fail_interface_table() -> dict:
    raise OSError('interface table unavailable')


def test_single_camera_on_small_subnet(monkeypatch) -> None:
    subnet = Subnet('eth0', ipaddress.IPv4Address('192.168.1.2'), ipaddress.IPv4Network('192.168.1.0/30'))
    probed: list[str] = []

    def fake_probe(address: str, port: int, timeout: float) -> bool:
        probed.append(address)
        assert port == 554
        return address == '192.168.1.1'

    monkeypatch.setattr(discovery, 'list_local_networks', lambda: [subnet])
    monkeypatch.setattr(discovery, 'probe_address', fake_probe)

    response = asyncio.run(main.get_all_onvif_cameras())
    assert response.status_code == 200
    assert response.media_type == 'application/json'
    assert response.body == b'["192.168.1.1"]'
    assert sorted(probed) == ['192.168.1.0', '192.168.1.1', '192.168.1.2', '192.168.1.3']


def test_no_networks_returns_empty_array(monkeypatch) -> None:
    monkeypatch.setattr(discovery, 'list_local_networks', lambda: [])

    response = asyncio.run(main.get_all_onvif_cameras())
    assert response.status_code == 200
    assert response.body == b'[]'


def test_enumeration_failure_returns_500_without_scanning(monkeypatch) -> None:
    monkeypatch.setattr(interfaces.psutil, 'net_if_stats', _fail_interface_table)

    def unexpected_scan(*args, **kwargs):
        raise AssertionError('scan must not run')

    monkeypatch.setattr(discovery, 'scan_addresses', unexpected_scan)

    response = asyncio.run(main.get_all_onvif_cameras())
    assert response.status_code == 500
    assert response.media_type == 'text/plain'
    assert b'interface table unavailable' in response.body


def test_health_reports_ports() -> None:
    data = asyncio.run(main.health())
    assert data.status == 'ok'
    assert data.port == 7654
    assert data.probe_port == 554


def test_requests_are_logged(monkeypatch, caplog) -> None:
    monkeypatch.setattr(interfaces.psutil, 'net_if_stats', _fail_interface_table)

    with caplog.at_level(logging.INFO, logger='rtsp_scout'):
        with TestClient(main.app) as client:
            response = client.get('/get_all_onvif_cameras/')

    assert response.status_code == 500
    assert response.headers['content-type'].startswith('text/plain')
    assert response.text.startswith('Error determining local networks:')
    assert 'Received request: method=GET path=/get_all_onvif_cameras/' in caplog.text
    assert 'Responded: status=500' in caplog.text


def test_settings_from_environment(monkeypatch) -> None:
    monkeypatch.setenv('SCAN_MAX_WORKERS', '16')
    monkeypatch.setenv('SCAN_PROBE_TIMEOUT', '0.5')

    settings = load_settings()
    assert settings.max_workers == 16
    assert settings.probe_timeout == 0.5
    assert settings.probe_port == 554


def test_invalid_settings_are_rejected(monkeypatch) -> None:
    monkeypatch.setenv('SCAN_MAX_WORKERS', '0')

    with pytest.raises(ValidationError):
        load_settings()
