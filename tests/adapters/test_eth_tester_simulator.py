import asyncio

import pytest
from web3 import Account

from timed_evm import SimulatorError
from timed_evm.adapters.eth_tester_adapter import (
    EthTesterSimulator,
    METHOD_NOT_FOUND,
    SERVER_ERROR,
)
from timed_evm.observability.instrumentation import Instrumentation

START_2020 = 1577836800


def envelope(method, params=None, rid=1):
    return {"jsonrpc": "2.0", "method": method, "params": params or [], "id": rid}


def call(sim, method, params=None, rid=1):
    return asyncio.run(sim.request(envelope(method, params, rid)))


@pytest.fixture
def sim():
    return EthTesterSimulator(start=START_2020, num_accounts=3)


def latest(sim):
    return sim.tester.get_block_by_number("latest")


# ==================================================
# 构造
# ==================================================
def test_genesis_uses_start_time(sim):
    genesis = sim.tester.get_block_by_number(0)
    assert genesis["timestamp"] == START_2020


def test_accounts_get_default_balance():
    sim = EthTesterSimulator(start=START_2020, default_balance=12345, num_accounts=2)

    accounts = sim.tester.get_accounts()

    assert len(accounts) == 2
    assert all(sim.tester.get_balance(a) == 12345 for a in accounts)


def test_unlock_private_key(account_key):
    sim = EthTesterSimulator(start=START_2020, unlocked_accounts=[account_key], num_accounts=2)

    assert len(sim.unlocked_accounts) == 1
    assert sim.unlocked_accounts[0] in sim.tester.get_accounts()


def test_unlock_known_address_is_noop():
    other = EthTesterSimulator(start=START_2020, num_accounts=1)
    address = other.tester.get_accounts()[0]

    sim = EthTesterSimulator(start=START_2020, unlocked_accounts=[address.lower()], num_accounts=1)

    assert sim.unlocked_accounts == [address]


def test_unlocked_key_account_gets_default_balance(account_key):
    sim = EthTesterSimulator(
        start=START_2020, default_balance=777, unlocked_accounts=[account_key], num_accounts=2,
    )
    address = sim.unlocked_accounts[0]

    assert sim.tester.get_balance(address) == 777
    # 生成账户数量不受影响，unlock 的账户排在后面
    assert len(sim.tester.get_accounts()) == 3
    assert sim.tester.get_accounts()[-1] == address


def test_unlock_same_key_twice(account_key):
    sim = EthTesterSimulator(
        start=START_2020, unlocked_accounts=[account_key, account_key], num_accounts=1,
    )

    assert len(sim.unlocked_accounts) == 1
    assert len(sim.tester.get_accounts()) == 2


def test_unlock_key_and_its_address(account_key):
    address = Account.from_key(account_key).address

    sim = EthTesterSimulator(
        start=START_2020, unlocked_accounts=[account_key, address], num_accounts=1,
    )

    assert sim.unlocked_accounts == [address]


def test_unlock_unknown_address_rejected():
    with pytest.raises(SimulatorError):
        EthTesterSimulator(
            start=START_2020,
            unlocked_accounts=["0x" + "12" * 20],
            num_accounts=1,
        )


def test_unlock_bad_key_rejected():
    with pytest.raises(SimulatorError):
        EthTesterSimulator(start=START_2020, unlocked_accounts=["0x1234"], num_accounts=1)


# ==================================================
# JSON-RPC 信封
# ==================================================
def test_response_echoes_id(sim):
    out = call(sim, "eth_accounts", rid=987654321)

    assert out["jsonrpc"] == "2.0"
    assert out["id"] == 987654321
    assert len(out["result"]) == 3


def test_unknown_method_is_error(sim):
    out = call(sim, "nonsense")

    assert out["error"]["code"] == METHOD_NOT_FOUND
    assert "result" not in out


def test_unknown_namespaced_method_is_error(sim):
    out = call(sim, "foo_bar")

    assert "error" in out


# ==================================================
# evm_increaseTime / evm_mine
# ==================================================
def test_increase_time_accumulates(sim):
    assert call(sim, "evm_increaseTime", [100])["result"] == 100
    assert call(sim, "evm_increaseTime", ["0x64"])["result"] == 200


@pytest.mark.parametrize("bad", [[-1], [1.5], []])
def test_increase_time_bad_params(sim, bad):
    out = call(sim, "evm_increaseTime", bad)

    assert out["error"]["code"] == SERVER_ERROR
    assert sim._offset == 0


def test_mine_without_offset_adds_one_block(sim):
    before = latest(sim)

    out = call(sim, "evm_mine")

    assert out["result"] == "0x0"
    assert latest(sim)["number"] == before["number"] + 1


def test_mine_many_blocks(sim):
    before = latest(sim)["number"]

    call(sim, "evm_mine", [3])

    assert latest(sim)["number"] == before + 3


def test_mine_seals_offset(sim):
    before = latest(sim)

    call(sim, "evm_increaseTime", [3600])
    call(sim, "evm_mine")

    after = latest(sim)
    assert after["number"] > before["number"]
    assert after["timestamp"] >= before["timestamp"] + 3600
    assert sim._offset == 0


def test_mine_seals_exactly_at_latest_plus_offset(sim):
    before = latest(sim)["timestamp"]

    call(sim, "evm_increaseTime", [300])
    call(sim, "evm_mine")

    assert latest(sim)["timestamp"] == before + 300


def test_blocks_stay_near_start(sim):
    call(sim, "evm_mine", [5])

    # 链上时钟从 start 起算，不跟宿主机时间走
    assert START_2020 < latest(sim)["timestamp"] < START_2020 + 60


def test_transaction_block_stays_near_start(sim):
    sender, recipient = sim.tester.get_accounts()[:2]

    sim.tester.send_transaction({
        "from": sender, "to": recipient, "value": 1, "gas": 21000,
        "max_fee_per_gas": 10 ** 10, "max_priority_fee_per_gas": 10 ** 9,
    })

    assert START_2020 < latest(sim)["timestamp"] < START_2020 + 60


def test_pending_block_follows_chain_clock(sim):
    pending = sim.tester.get_block_by_number("pending")

    assert pending["timestamp"] > latest(sim)["timestamp"]
    assert pending["timestamp"] < START_2020 + 60


def test_time_travel_lands_on_requested_timestamp(sim):
    out = call(sim, "testing_timeTravel", [START_2020 + 1000])

    assert "error" not in out
    assert latest(sim)["timestamp"] == START_2020 + 1000


def test_offset_is_consumed_once(sim):
    call(sim, "evm_increaseTime", [3600])
    call(sim, "evm_mine")
    sealed = latest(sim)["timestamp"]

    call(sim, "evm_mine")

    # 下一块只比上一块晚一点，不会再跳 3600 秒
    assert latest(sim)["timestamp"] < sealed + 3600


def test_snapshot_and_revert(sim):
    snap = call(sim, "evm_snapshot")["result"]
    number = latest(sim)["number"]

    call(sim, "evm_increaseTime", [60])
    call(sim, "evm_mine", [2])
    assert call(sim, "evm_revert", [snap])["result"] is True

    assert latest(sim)["number"] == number


def test_revert_rewinds_chain_clock(sim):
    snap = call(sim, "evm_snapshot")["result"]
    call(sim, "evm_increaseTime", [86400])
    call(sim, "evm_mine")

    call(sim, "evm_revert", [snap])
    call(sim, "evm_mine")

    assert latest(sim)["timestamp"] < START_2020 + 60


def test_revert_unknown_snapshot(sim):
    out = call(sim, "evm_revert", [424242])
    assert "error" in out


def test_revert_clears_pending_offset(sim):
    snap = call(sim, "evm_snapshot")["result"]
    call(sim, "evm_increaseTime", [500])
    call(sim, "evm_revert", [snap])

    assert sim._offset == 0


# ==================================================
# Instrumentation
# ==================================================
def test_rpc_calls_are_counted_and_timed():
    inst = Instrumentation(enabled=True)
    sim = EthTesterSimulator(start=START_2020, num_accounts=1, inst=inst)

    call(sim, "evm_increaseTime", [10])
    call(sim, "evm_mine")
    call(sim, "evm_mine")

    assert inst.metrics.get("rpc.calls.evm_increaseTime") == 1
    assert inst.metrics.get("rpc.calls.evm_mine") == 2
    assert "rpc:evm_mine" in inst.timeline
    assert "simulator_init" in inst.timeline
