"""Tests for call-data encoding against well-known selectors."""
from __future__ import annotations

import pytest
from eth_abi import decode

from pilot.transactions import abi

ROUTER = "0x1C232F01118CB8B424793ae03F870aa7D0ac7f77"
USER = "0xabcdefabcdefabcdefabcdefabcdefabcdefabcd"
GNO = "0x9C58BAcC331c9aa871AFD802DB6379a98e80CEdb"
WXDAI = "0xe91D153E0b41518A2Ce8Dd3D7944Fa863463a97d"


@pytest.mark.parametrize(
    "signature, expected",
    [
        ("approve(address,uint256)", "095ea7b3"),
        ("supply(address,uint256,address,uint16)", "617ba037"),
        ("deposit(address,uint256,address,uint16)", "e8eda9df"),
        (abi.ADD_LIQUIDITY, "e8e33700"),
        (abi.ADD_LIQUIDITY_ETH, "f305d719"),
        (abi.STABLE_ADD_LIQUIDITY, "029b2f34"),
        (abi.JOIN_POOL, "b95cac28"),
        (abi.STAKE, "a694fc3a"),
        (abi.DEPOSIT, "b6b55f25"),
    ],
)
def test_selectors(signature, expected):
    assert abi.selector(signature).hex() == expected


@pytest.mark.parametrize(
    "signature, types",
    [
        (abi.APPROVE, abi.APPROVE_TYPES),
        (abi.LENDING_CALL.format(name="supply"), abi.LENDING_CALL_TYPES),
        (abi.ADD_LIQUIDITY, abi.ADD_LIQUIDITY_TYPES),
        (abi.ADD_LIQUIDITY_ETH, abi.ADD_LIQUIDITY_ETH_TYPES),
        (abi.STABLE_ADD_LIQUIDITY, abi.STABLE_ADD_LIQUIDITY_TYPES),
        (abi.JOIN_POOL, abi.JOIN_POOL_TYPES),
        (abi.JOIN_POOL_ETH, abi.JOIN_POOL_ETH_TYPES),
        (abi.STAKE, abi.AMOUNT_TYPES),
        (abi.DEPOSIT, abi.AMOUNT_TYPES),
    ],
)
def test_argument_types_match_signatures(signature, types):
    name = signature[:signature.index("(")]
    assert signature == f"{name}({','.join(types)})"


def test_approve_is_unlimited():
    data = abi.approve(ROUTER)
    assert data.startswith("0x095ea7b3")
    spender, amount = decode(["address", "uint256"], bytes.fromhex(data[10:]))
    assert spender.lower() == ROUTER.lower()
    assert amount == abi.MAX_UINT256 == 2**256 - 1


def test_lending_supply_uses_given_function_name():
    agave = abi.lending_supply("deposit", WXDAI, 10**18, USER)
    aave = abi.lending_supply("supply", WXDAI, 10**18, USER)
    assert agave[2:10] == "e8eda9df"
    assert aave[2:10] == "617ba037"
    assert agave[10:] == aave[10:]
    asset, amount, on_behalf, referral = decode(
        ["address", "uint256", "address", "uint16"], bytes.fromhex(agave[10:])
    )
    assert (asset.lower(), amount, on_behalf.lower(), referral) == (WXDAI.lower(), 10**18, USER, 0)


def test_add_liquidity_zero_minimums():
    data = abi.add_liquidity(GNO, WXDAI, 5, 5, USER, 1_700_000_000)
    args = decode(
        ["address", "address", "uint256", "uint256", "uint256", "uint256", "address", "uint256"],
        bytes.fromhex(data[10:]),
    )
    assert args[2:6] == (5, 5, 0, 0)
    assert args[7] == 1_700_000_000


def test_stable_add_liquidity_amount_in_slot_zero():
    data = abi.stable_add_liquidity(42)
    amounts, min_mint = decode(["uint256[4]", "uint256"], bytes.fromhex(data[10:]))
    assert amounts == (42, 0, 0, 0)
    assert min_mint == 0


def test_join_pool_user_data():
    pool_id = "0x00d7c137996aa7bf16d83ecbfd4d3d5cce77c0c8000200000000000000000a25"
    data = abi.join_pool(pool_id, USER, USER, [GNO, WXDAI], [7, 0])
    pid, sender, recipient, request = decode(
        ["bytes32", "address", "address", "(address[],uint256[],bytes,bool)"],
        bytes.fromhex(data[10:]),
    )
    assert "0x" + pid.hex() == pool_id
    assert sender.lower() == recipient.lower() == USER
    assets, max_in, user_data, internal = request
    assert [a.lower() for a in assets] == [GNO.lower(), WXDAI.lower()]
    assert max_in == (7, 0)
    assert internal is False
    assert decode(["uint256", "uint256[]", "uint256"], user_data) == (1, (7, 0), 0)


def test_join_pool_native_variant():
    pool_id = "0x" + "11" * 32
    data = abi.join_pool(pool_id, USER, USER, ["0x0000000000000000000000000000000000000000"], [1], native=True)
    assert data[2:10] == abi.selector(abi.JOIN_POOL_ETH).hex()
