"""
Shared test data for airdrop proof tests.
"""

ADDRESS_A = "0x" + "A" * 40
ADDRESS_B = "0x" + "B" * 40
ADDRESS_C = "0x" + "C" * 40
ADDRESS_D = "0x" + "D" * 40

# Well-known development accounts, checksum-cased
ACCOUNT_1 = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
ACCOUNT_2 = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
ACCOUNT_3 = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"

DEFAULT_AMOUNT = 100


def make_addresses(count: int, offset: int = 0) -> list[str]:
    """Generate distinct, valid addresses."""
    return [f"0x{i + offset + 1:040x}" for i in range(count)]
