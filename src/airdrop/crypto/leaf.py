"""
Airdrop Proof Service - Leaf Encoding

Encodes an (address, amount) entitlement into a 32-byte Merkle leaf that an
OpenZeppelin-style ``MerkleProof.verify`` contract accepts:

    leaf = keccak256(bytes.concat(keccak256(abi.encodePacked(account, amount))))

The second keccak round keeps a 64-byte internal node from ever being
presented as a leaf (second preimage attack on single-hashed leaves).
"""

from eth_abi.packed import encode_packed
from eth_utils import is_hex_address, keccak, to_normalized_address

LEAF_ABI_TYPES = ("address", "uint256")
MAX_AMOUNT = 2**256 - 1


class LeafEncodingError(ValueError):
    """Base exception for leaf encoding errors."""

    pass


class InvalidAddressError(LeafEncodingError):
    """Address is not a 20-byte hex string."""

    pass


class InvalidAmountError(LeafEncodingError):
    """Amount does not fit an unsigned 256-bit integer."""

    pass


def is_valid_address(address: object) -> bool:
    """Check whether a value is a 20-byte hex address string (any case)."""
    return isinstance(address, str) and is_hex_address(address.strip())


def normalize_address(address: str) -> str:
    """
    Return the canonical form of an address.

    The canonical form is lowercase and ``0x``-prefixed. Checksum casing is
    not enforced, so every case variant of an address maps to one value.

    Raises:
        InvalidAddressError: If address is not a 40-digit hex string
    """
    if not is_valid_address(address):
        raise InvalidAddressError(f"Invalid address: {address!r}")
    return to_normalized_address(address.strip())


def validate_amount(amount: object) -> int:
    """
    Check that amount is a uint256.

    Raises:
        InvalidAmountError: If amount is negative, too large or not an int
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmountError(f"Amount must be an integer, got {type(amount).__name__}")
    if amount < 0 or amount > MAX_AMOUNT:
        raise InvalidAmountError(f"Amount {amount} out of uint256 range")
    return amount


def pack_leaf_data(address: str, amount: int) -> bytes:
    """Tightly pack (address, amount) the way ``abi.encodePacked`` does."""
    return encode_packed(
        list(LEAF_ABI_TYPES),
        [normalize_address(address), validate_amount(amount)],
    )


def encode_leaf(address: str, amount: int) -> bytes:
    """
    Compute the Merkle leaf for an entitlement.

    Args:
        address: Recipient address, any case, ``0x`` prefix optional
        amount: Entitlement in token base units

    Returns:
        32-byte leaf hash

    Raises:
        InvalidAddressError: If the address is malformed
        InvalidAmountError: If the amount is not a uint256
    """
    inner = keccak(pack_leaf_data(address, amount))
    return keccak(inner)
