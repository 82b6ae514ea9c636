import pytest

from nomkit.app import (
    AppError,
    NbtcMemo,
    RewardTimer,
    ibc_fee,
    in_upgrade_window,
)


@pytest.mark.parametrize(
    "timestamp, expected",
    [
        (1690218300, True),  # Monday 17:05 UTC
        (1690391100, True),  # Wednesday 17:05 UTC
        (1690392000, False),  # Wednesday 17:15 UTC
        (1690736700, False),  # Sunday 17:05 UTC
    ],
)
def test_upgrade_date(timestamp, expected):
    assert in_upgrade_window(timestamp) is expected


def test_upgrade_window_start_and_end():
    monday_17_00 = 1690218300 - 5 * 60
    assert in_upgrade_window(monday_17_00) is True
    assert in_upgrade_window(monday_17_00 - 1) is False
    assert in_upgrade_window(monday_17_00 + 10 * 60 - 1) is True
    assert in_upgrade_window(monday_17_00 + 10 * 60) is False


def test_upgrade_window_out_of_range():
    with pytest.raises(AppError):
        in_upgrade_window(10**20)


@pytest.mark.parametrize(
    "amount, fee",
    [(0, 0), (199, 0), (200, 1), (1000, 5), (1_000_000, 5000), (100_000_000, 500_000)],
)
def test_ibc_fee(amount, fee):
    assert ibc_fee(amount) == fee


def test_ibc_fee_rejects_negative():
    with pytest.raises(AppError):
        ibc_fee(-1)


def test_reward_timer_ticks_once_per_period():
    timer = RewardTimer()
    assert timer.tick(120) is True
    assert timer.last_period == 120
    assert timer.tick(200) is False
    assert timer.last_period == 120
    assert timer.tick(239) is False
    assert timer.tick(240) is True
    assert timer.last_period == 240


def test_reward_timer_initial_period():
    timer = RewardTimer()
    assert timer.tick(119) is False
    assert timer.last_period == 0


def test_memo_empty():
    memo = NbtcMemo.parse("")
    assert memo.script is None
    assert memo.is_withdraw is False


def test_memo_withdraw_to_segwit_address():
    memo = NbtcMemo.parse("withdraw:bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t4")
    assert memo.is_withdraw is True
    assert memo.script == bytes.fromhex("0014751e76e8199196d454941c45d1b3a323f1433bd6")


def test_memo_withdraw_to_script_hex():
    memo = NbtcMemo.parse("withdraw:0014751e76e8199196d454941c45d1b3a323f1433bd6")
    assert memo.script == bytes.fromhex("0014751e76e8199196d454941c45d1b3a323f1433bd6")


@pytest.mark.parametrize(
    "text, message",
    [
        ("withdraw", "Invalid memo"),
        ("withdraw:a:b", "Invalid memo"),
        ("send:0014", "Only withdraw memo action is supported"),
    ],
)
def test_memo_errors(text, message):
    with pytest.raises(AppError, match=message):
        NbtcMemo.parse(text)


@pytest.mark.parametrize("dest", ["zz", "abc", "not-an-address"])
def test_memo_invalid_destination(dest):
    with pytest.raises(AppError):
        NbtcMemo.parse(f"withdraw:{dest}")