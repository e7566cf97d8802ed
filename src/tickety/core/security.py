"""Wallet address and signature utilities built on eth-account primitives."""
from __future__ import annotations

import re

from eth_account import Account
from eth_account.messages import encode_defunct

_ADDRESS_RE = re.compile(r"^0x[a-f0-9]{40}$")


def normalize_address(address: str | None) -> str:
    """Return the canonical lowercase form used as a storage and session key."""
    return str(address or "").strip().lower()


def is_eth_address(address: str | None) -> bool:
    """Return True if `address` is `0x` followed by 40 hex digits (any case)."""
    return bool(_ADDRESS_RE.match(normalize_address(address)))


def recover_signer(message: str, signature: str) -> str:
    """Recover the address that produced an EIP-191 `personal_sign` signature.

    Args:
        message: Exact text that was signed on the client.
        signature: Hex-encoded 65-byte signature (with or without `0x`).

    Returns:
        The recovered signer address, lowercase-normalized.

    Raises:
        ValueError: If the signature cannot be decoded or recovered.
    """
    try:
        recovered = Account.recover_message(encode_defunct(text=message), signature=signature)
    except Exception as err:
        raise ValueError(f"Signature recovery failed: {err}") from err
    return normalize_address(recovered)
