"""Encode calls and decode results from JSON ABI fragments: no I/O."""
from __future__ import annotations

from typing import Any

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector, to_bytes, to_checksum_address


class AbiError(ValueError):
    """Raised when a method is missing from a fragment or values don't fit it."""


def find_function(abi: list[dict[str, Any]], method: str, arg_count: int | None = None) -> dict[str, Any]:
    """Return the function entry named ``method``, matching arity when overloaded."""
    candidates = [e for e in abi if e.get("type", "function") == "function" and e.get("name") == method]
    if arg_count is not None and len(candidates) > 1:
        candidates = [e for e in candidates if len(e.get("inputs", [])) == arg_count]
    if not candidates:
        raise AbiError(f"Method '{method}' not found in ABI fragment")
    return candidates[0]


def abi_type(param: dict[str, Any]) -> str:
    """Canonical type string for a parameter, expanding tuple components.

    Examples:
        {"type": "uint256"} → "uint256"
        {"type": "tuple[]", "components": [address, bytes]} → "(address,bytes)[]"
    """
    typ = param["type"]
    if typ.startswith("tuple"):
        inner = ",".join(abi_type(c) for c in param.get("components", []))
        return f"({inner}){typ[len('tuple'):]}"
    return typ


def signature(fn: dict[str, Any]) -> str:
    return f"{fn['name']}({','.join(abi_type(p) for p in fn.get('inputs', []))})"


def selector(fn: dict[str, Any]) -> bytes:
    return function_signature_to_4byte_selector(signature(fn))


def _normalize(param: dict[str, Any], value: Any) -> Any:
    """Coerce loosely-typed Python values into what eth_abi expects."""
    typ = param["type"]
    if typ.endswith("]"):
        element = dict(param, type=typ[: typ.rindex("[")])
        return [_normalize(element, v) for v in value]
    if typ == "tuple":
        components = param.get("components", [])
        if isinstance(value, dict):
            value = [value[c["name"]] for c in components]
        return tuple(_normalize(c, v) for c, v in zip(components, value))
    if typ == "address":
        return to_checksum_address(value)
    if typ.startswith("bytes") and isinstance(value, str):
        return to_bytes(hexstr=value)
    return value


def encode_call(abi: list[dict[str, Any]], method: str, args: list[Any] | tuple[Any, ...]) -> bytes:
    """Selector + ABI-encoded arguments for ``method``."""
    fn = find_function(abi, method, len(args))
    inputs = fn.get("inputs", [])
    if len(inputs) != len(args):
        raise AbiError(f"{signature(fn)} expects {len(inputs)} args, got {len(args)}")
    types = [abi_type(p) for p in inputs]
    try:
        values = [_normalize(p, a) for p, a in zip(inputs, args)]
        return selector(fn) + encode(types, values)
    except Exception as e:
        raise AbiError(f"Cannot encode {signature(fn)} with {args!r}: {e}") from e


def decode_values(
    abi: list[dict[str, Any]], method: str, data: bytes, arg_count: int | None = None
) -> tuple[Any, ...]:
    """Decode return data into one tuple entry per declared output."""
    fn = find_function(abi, method, arg_count)
    outputs = fn.get("outputs", [])
    if not outputs:
        return ()
    if not data:
        raise AbiError(f"Empty return data for {signature(fn)}")
    try:
        return tuple(decode([abi_type(p) for p in outputs], data))
    except Exception as e:
        raise AbiError(f"Cannot decode {signature(fn)} result: {e}") from e


def decode_result(
    abi: list[dict[str, Any]], method: str, data: bytes, arg_count: int | None = None
) -> Any:
    """Like :func:`decode_values`, but a single output is unwrapped."""
    values = decode_values(abi, method, data, arg_count)
    if not values:
        return None
    if len(values) == 1:
        return values[0]
    return values
