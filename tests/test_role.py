import os

import pytest

from node.role import (
    DEFAULT_SLAVE_PORT,
    MasterRole,
    MemberRole,
    resolve_role,
    write_role_config,
)
from protocol.errors import RoleConfigError


def test_absent_role_file_means_master(tmp_path):
    assert resolve_role(tmp_path / "config.txt") == MasterRole()


def test_role_file_with_port_only(tmp_path):
    path = tmp_path / "config.txt"
    path.write_text("slave_port=9999\n")

    assert resolve_role(path) == MemberRole(master_ip_address="", slave_port=9999)


def test_unparseable_port_defaults(tmp_path):
    path = tmp_path / "config.txt"
    path.write_text("master_ip_address=10.0.0.7\nslave_port=abc\n")

    role = resolve_role(path)
    assert role == MemberRole(master_ip_address="10.0.0.7", slave_port=DEFAULT_SLAVE_PORT)
    assert role.slave_port == 8777


@pytest.mark.parametrize("value", ["-1", "", "+", "++80", "4294967296", " 80"])
def test_out_of_range_ports_default(tmp_path, value):
    path = tmp_path / "config.txt"
    path.write_text(f"slave_port={value}")

    assert resolve_role(path).slave_port == 8777


def test_port_with_plus_sign(tmp_path):
    path = tmp_path / "config.txt"
    path.write_text("slave_port=+9999")

    assert resolve_role(path).slave_port == 9999


def test_empty_file_is_still_member(tmp_path):
    path = tmp_path / "config.txt"
    path.write_text("")

    assert resolve_role(path) == MemberRole()


def test_unknown_keys_and_garbage_ignored(tmp_path):
    path = tmp_path / "config.txt"
    path.write_text("colour=blue\nnot a pair\nmaster_ip_address=a=b\nslave_port=1234")

    assert resolve_role(path) == MemberRole(master_ip_address="a=b", slave_port=1234)


@pytest.mark.skipif(os.geteuid() == 0, reason="root can read any file")
def test_unreadable_role_file_is_fatal(tmp_path):
    path = tmp_path / "config.txt"
    path.write_text("slave_port=1")
    path.chmod(0)
    try:
        with pytest.raises(RoleConfigError):
            resolve_role(path)
    finally:
        path.chmod(0o644)


def test_role_file_that_is_a_directory_is_fatal(tmp_path):
    path = tmp_path / "config.txt"
    path.mkdir()

    with pytest.raises(RoleConfigError):
        resolve_role(path)


def test_write_role_config_round_trip(tmp_path, capsys):
    path = tmp_path / "config.txt"

    assert write_role_config(path, "127.0.0.1", 50123) is True
    assert path.read_text() == "master_ip_address=127.0.0.1\nslave_port=50123"
    assert resolve_role(path) == MemberRole("127.0.0.1", 50123)
    assert "Config file has been created!" in capsys.readouterr().out


def test_write_role_config_never_overwrites(tmp_path, capsys):
    path = tmp_path / "config.txt"
    path.write_text("slave_port=1")

    assert write_role_config(path, "127.0.0.1", 50123) is False
    assert path.read_text() == "slave_port=1"
    assert "Config file already exist!" in capsys.readouterr().out
