import socket
import threading

import pytest

from protocol.handler import (
    ALREADY_EXISTS,
    JOINED,
    UNKNOWN_COMMAND,
    handle_incoming_request,
    parse_command,
)
from protocol.line_handler import MAX_LINE_LENGTH, recv_line
from registry.store import Registry

SECRET = "secret123"
PEER = ("10.0.0.5", 40001)


@pytest.fixture
def registry(tmp_path):
    reg = Registry(tmp_path / "master_node.db")
    reg.init_schema()
    yield reg
    reg.close()


def exchange(request, registry, lock=None, addr=PEER):
    """Feed one raw request through the handler and return (result, reply)."""
    server_sock, client_sock = socket.socketpair()
    try:
        client_sock.sendall(request)
        client_sock.shutdown(socket.SHUT_WR)
        result = handle_incoming_request(server_sock, addr, SECRET, registry, lock or threading.Lock())
        server_sock.close()
        return result, recv_line(client_sock, timeout=2)
    finally:
        server_sock.close()
        client_sock.close()


def test_parse_command_splits_on_single_spaces():
    assert parse_command("JOIN  key\r\n") == ["JOIN", "", "key"]


def test_join_registers_new_member(registry):
    result, reply = exchange(b"JOIN secret123\n", registry)

    assert result["status"] == "joined"
    assert reply == JOINED
    assert [m.address for m in registry.list_members()] == ["10.0.0.5:40001"]


def test_second_join_reports_existing(registry):
    exchange(b"JOIN secret123\n", registry)
    result, reply = exchange(b"JOIN secret123\n", registry)

    assert result["status"] == "exists"
    assert reply == ALREADY_EXISTS
    assert len(registry.list_members()) == 1


def test_wrong_secret_is_dropped_silently(registry):
    result, reply = exchange(b"JOIN wrong\n", registry)

    assert result["status"] == "rejected"
    assert reply == ""
    assert registry.list_members() == []


def test_extra_tokens_after_secret_are_ignored(registry):
    result, reply = exchange(b"JOIN secret123 trailing\n", registry)

    assert reply == JOINED


@pytest.mark.parametrize("request_line", [b"LEAVE secret123\n", b"join secret123\n", b"\n", b""])
def test_unknown_command(registry, request_line):
    result, reply = exchange(request_line, registry)

    assert result["status"] == "unknown"
    assert reply == UNKNOWN_COMMAND
    assert registry.list_members() == []


def test_join_without_key_is_malformed(registry):
    result, reply = exchange(b"JOIN\n", registry)

    assert result["status"] == "error"
    assert reply == ""
    assert registry.list_members() == []


def test_line_without_newline_is_capped(registry):
    result, reply = exchange(b"J" * (MAX_LINE_LENGTH + 100), registry)

    assert result["status"] == "error"
    assert reply == ""
    assert registry.list_members() == []


def test_registry_failure_is_contained(registry):
    registry.close()

    result, reply = exchange(b"JOIN secret123\n", registry)

    assert result["status"] == "error"
    assert reply == ""


def test_concurrent_joins_from_one_address_insert_once(registry):
    lock = threading.Lock()
    results = []

    def worker():
        results.append(exchange(b"JOIN secret123\n", registry, lock=lock))

    threads = [threading.Thread(target=worker) for _ in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    replies = sorted(reply for _, reply in results)
    assert replies.count(JOINED) == 1
    assert replies.count(ALREADY_EXISTS) == 15
    assert len(registry.list_members()) == 1
