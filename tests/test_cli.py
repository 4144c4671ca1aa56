import ipaddress
import socket
from unittest import mock

import pytest

from dping.cli import main, resolve_address


def _info(family, address):
    sockaddr = (address, 0) if family == socket.AF_INET else (address, 0, 0, 0)
    return (family, socket.SOCK_STREAM, 6, "", sockaddr)


def test_resolve_ipv4_literal():
    assert resolve_address("127.0.0.1") == ipaddress.IPv4Address("127.0.0.1")


def test_resolve_ipv6_literal():
    assert resolve_address("::1") == ipaddress.IPv6Address("::1")


def test_resolve_prefers_ipv4():
    infos = [_info(socket.AF_INET6, "2001:db8::1"), _info(socket.AF_INET, "192.0.2.7")]
    with mock.patch("socket.getaddrinfo", return_value=infos):
        result = resolve_address("host.example.com")
    assert result == ipaddress.IPv4Address("192.0.2.7")


def test_resolve_falls_back_to_first_ipv6():
    infos = [_info(socket.AF_INET6, "2001:db8::1"), _info(socket.AF_INET6, "2001:db8::2")]
    with mock.patch("socket.getaddrinfo", return_value=infos):
        result = resolve_address("host.example.com")
    assert result == ipaddress.IPv6Address("2001:db8::1")


def test_resolve_empty_result_raises():
    with mock.patch("socket.getaddrinfo", return_value=[]):
        with pytest.raises(ValueError, match="Unable to resolve address: nowhere.example.com"):
            resolve_address("nowhere.example.com")


def test_resolve_failure_propagates():
    with mock.patch("socket.getaddrinfo", side_effect=socket.gaierror("no such host")):
        with pytest.raises(OSError):
            resolve_address("nowhere.example.com")


def test_main_unresolvable_target_returns_error(capsys):
    with mock.patch("socket.getaddrinfo", side_effect=socket.gaierror("no such host")):
        status = main(["nowhere.example.com"])
    assert status == 1
    assert "Error:" in capsys.readouterr().err


def test_main_rejects_bad_interval():
    with pytest.raises(SystemExit) as excinfo:
        main(["127.0.0.1", "-i", "abc"])
    assert excinfo.value.code == 2


def test_main_rejects_negative_packets():
    with pytest.raises(SystemExit) as excinfo:
        main(["127.0.0.1", "--packets", "-5"])
    assert excinfo.value.code == 2


def test_main_requires_target():
    with pytest.raises(SystemExit) as excinfo:
        main([])
    assert excinfo.value.code == 2


def test_main_socket_failure_reports_and_logs(tmp_path, capsys):
    log_path = tmp_path / "ping.log"
    with mock.patch("socket.socket", side_effect=PermissionError("Operation not permitted")):
        status = main(["127.0.0.1", "-p", "50", "-i", "20", "-o", str(log_path)])
    assert status == 1

    captured = capsys.readouterr()
    assert "PING 127.0.0.1 (127.0.0.1): 间隔20ms发包，每50个包统计一次 [IPv4]" in captured.out
    assert "Ping session failed: Operation not permitted" in captured.err

    content = log_path.read_text(encoding="utf-8")
    assert "=== PING 127.0.0.1 (127.0.0.1) started:" in content
    assert "[IPv4] ===" in content
    assert content.count("\n") == 1


def test_main_header_uses_defaults_for_ipv6(capsys):
    with mock.patch("socket.socket", side_effect=PermissionError("denied")):
        status = main(["::1"])
    assert status == 1
    out = capsys.readouterr().out
    assert "PING ::1 (::1): 间隔10ms发包，每100个包统计一次 [IPv6]" in out