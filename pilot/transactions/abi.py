"""ABI call-data encoding for the protocol calls the builder emits."""
from __future__ import annotations

from typing import Any, Sequence

from eth_abi import encode
from web3 import Web3

MAX_UINT256 = 2**256 - 1

APPROVE = "approve(address,uint256)"
APPROVE_TYPES = ["address", "uint256"]
LENDING_CALL = "{name}(address,uint256,address,uint16)"
LENDING_CALL_TYPES = ["address", "uint256", "address", "uint16"]
ADD_LIQUIDITY = "addLiquidity(address,address,uint256,uint256,uint256,uint256,address,uint256)"
ADD_LIQUIDITY_TYPES = ["address", "address", "uint256", "uint256", "uint256", "uint256", "address", "uint256"]
ADD_LIQUIDITY_ETH = "addLiquidityETH(address,uint256,uint256,uint256,address,uint256)"
ADD_LIQUIDITY_ETH_TYPES = ["address", "uint256", "uint256", "uint256", "address", "uint256"]
STABLE_ADD_LIQUIDITY = "add_liquidity(uint256[4],uint256)"
STABLE_ADD_LIQUIDITY_TYPES = ["uint256[4]", "uint256"]
JOIN_POOL = "joinPool(bytes32,address,address,(address[],uint256[],bytes,bool))"
JOIN_POOL_TYPES = ["bytes32", "address", "address", "(address[],uint256[],bytes,bool)"]
JOIN_POOL_ETH = "joinPoolETH(bytes32,address,(address[],uint256[],bytes,bool))"
JOIN_POOL_ETH_TYPES = ["bytes32", "address", "(address[],uint256[],bytes,bool)"]
STAKE = "stake(uint256)"
DEPOSIT = "deposit(uint256)"
AMOUNT_TYPES = ["uint256"]

# Weighted-pool join kind EXACT_TOKENS_IN_FOR_BPT_OUT
EXACT_TOKENS_IN = 1


def selector(signature: str) -> bytes:
    return bytes(Web3.keccak(text=signature)[:4])


def encode_call(signature: str, types: Sequence[str], args: Sequence[Any]) -> str:
    """0x-prefixed call data: 4-byte selector + ABI-encoded arguments."""
    data = selector(signature) + encode(list(types), list(args))
    return "0x" + data.hex()


def checksum(address: str) -> str:
    return Web3.to_checksum_address(address)


def approve(spender: str, amount: int = MAX_UINT256) -> str:
    return encode_call(APPROVE, APPROVE_TYPES, [checksum(spender), amount])


def lending_supply(function_name: str, asset: str, amount: int, on_behalf_of: str) -> str:
    return encode_call(
        LENDING_CALL.format(name=function_name),
        LENDING_CALL_TYPES,
        [checksum(asset), amount, checksum(on_behalf_of), 0],
    )


def add_liquidity(token_a: str, token_b: str, amount_a: int, amount_b: int, to: str, deadline: int) -> str:
    return encode_call(
        ADD_LIQUIDITY,
        ADD_LIQUIDITY_TYPES,
        [checksum(token_a), checksum(token_b), amount_a, amount_b, 0, 0, checksum(to), deadline],
    )


def add_liquidity_eth(token: str, amount: int, to: str, deadline: int) -> str:
    return encode_call(
        ADD_LIQUIDITY_ETH,
        ADD_LIQUIDITY_ETH_TYPES,
        [checksum(token), amount, 0, 0, checksum(to), deadline],
    )


def stable_add_liquidity(amount: int) -> str:
    return encode_call(STABLE_ADD_LIQUIDITY, STABLE_ADD_LIQUIDITY_TYPES, [[amount, 0, 0, 0], 0])


def join_user_data(max_amounts_in: Sequence[int]) -> bytes:
    return encode(["uint256", "uint256[]", "uint256"], [EXACT_TOKENS_IN, list(max_amounts_in), 0])


def join_pool(
    pool_id: str,
    sender: str,
    recipient: str,
    assets: Sequence[str],
    max_amounts_in: Sequence[int],
    native: bool = False,
) -> str:
    request = (
        [checksum(a) for a in assets],
        list(max_amounts_in),
        join_user_data(max_amounts_in),
        False,
    )
    pool = bytes.fromhex(pool_id.removeprefix("0x"))
    if native:
        return encode_call(JOIN_POOL_ETH, JOIN_POOL_ETH_TYPES, [pool, checksum(recipient), request])
    return encode_call(JOIN_POOL, JOIN_POOL_TYPES, [pool, checksum(sender), checksum(recipient), request])


def stake(amount: int) -> str:
    return encode_call(STAKE, AMOUNT_TYPES, [amount])


def deposit(amount: int) -> str:
    return encode_call(DEPOSIT, AMOUNT_TYPES, [amount])
