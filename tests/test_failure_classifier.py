from __future__ import annotations

import allure
import pytest

from pg_radar.collector.failure_classifier import (
    COMMAND_NOT_FOUND_EXIT_CODE,
    classify_command_failure,
    normalize_special_case,
)

pytestmark = [
    allure.epic("Collection Engine"),
    allure.feature("Failure Classification"),
]


def test_exit_code_127_means_command_not_found() -> None:
    classified = classify_command_failure(
        exit_code=COMMAND_NOT_FOUND_EXIT_CODE,
        output="sh: iotop: not found",
    )
    assert classified.skip is True
    assert classified.matched_rule == "command_not_found"
    assert classified.describe("iotop") == "command not found: iotop"


@pytest.mark.parametrize(
    "message",
    [
        'exec: "lsblk": executable file not found in $PATH',
        "bash: numactl: command not found",
    ],
)
def test_spawn_error_messages_mean_command_not_found(message: str) -> None:
    classified = classify_command_failure(exit_code=None, output="", error_message=message)
    assert classified.skip is True
    assert classified.matched_rule == "command_not_found"


def test_empty_output_is_a_skip() -> None:
    classified = classify_command_failure(exit_code=1, output="  \n")
    assert classified.skip is True
    assert classified.matched_rule == "empty_output"
    assert classified.describe("dmesg") == "data not available: dmesg"


@pytest.mark.parametrize(
    ("output", "pattern"),
    [
        ("ls: cannot access '/etc/sysctl.d': No such file or directory", "no such file or directory"),
        ("grep: No match", "no match"),
        ("device sdb doesn't exist", "doesn't exist"),
    ],
)
def test_no_data_patterns_are_skips(output: str, pattern: str) -> None:
    classified = classify_command_failure(exit_code=2, output=output)
    assert classified.skip is True
    assert classified.matched_rule == "no_data"
    assert classified.matched_pattern == pattern


def test_other_failures_are_genuine() -> None:
    classified = classify_command_failure(exit_code=1, output="permission denied")
    assert classified.skip is False
    assert classified.matched_rule == "fallback_failure"
    assert classified.describe("dmesg") == "command failed: dmesg"


def test_systemd_detect_virt_none_is_normalized() -> None:
    assert normalize_special_case("systemd-detect-virt", b"none\n") == b"none\n"
    assert normalize_special_case("systemd-detect-virt", b"none") == b"none\n"


def test_special_case_ignores_other_output_and_commands() -> None:
    assert normalize_special_case("systemd-detect-virt", b"kvm\n") is None
    assert normalize_special_case("uname", b"none\n") is None
