"""Burn intent construction.

A burn intent authorises Circle Gateway to burn USDC from the depositor's
Gateway Wallet balance on the source domain and mint the same amount to
``recipient`` on the destination domain.

Building an intent is pure: the clock and the nonce source are injected so
that the result is deterministic in tests.

Example::

    import time

    from gateway_defi.circle_gateway.burn_intent import build_burn_intent, random_nonce

    intent = build_burn_intent(
        depositor="0x...",
        source_domain=0,
        amount=1_000_000,  # 1 USDC
        destination_domain=3,
        recipient=vault_address,
        clock=time.time,
        nonce_source=random_nonce,
    )
"""

import secrets
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from eth_typing import HexAddress
from hexbytes import HexBytes

from gateway_defi.circle_gateway.constants import DEFAULT_DEADLINE_HORIZON
from gateway_defi.circle_gateway.errors import InvalidAmount
from gateway_defi.utils import addr

if TYPE_CHECKING:
    from gateway_defi.circle_gateway.domains import DomainRegistry

#: Returns UNIX time in seconds
Clock = Callable[[], float]

#: Returns a fresh burn intent nonce
NonceSource = Callable[[], int]

UINT32_MAX = 2**32 - 1

UINT256_MAX = 2**256 - 1


def random_nonce() -> int:
    """256-bit random nonce.

    Two intents from the same depositor collide with probability ~n²/2²⁵⁷,
    no coordination between processes is needed.
    """
    return secrets.randbits(256)


class MonotonicNonceSource:
    """Strictly increasing nonces seeded from the wall clock in milliseconds.

    Unique within one process even when called twice in the same
    millisecond. Not coordinated across processes.
    """

    def __init__(self, clock: Clock = time.time):
        self.clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            self._last = max(self._last + 1, int(self.clock() * 1000))
            return self._last


def address_to_bytes32(address: HexAddress | str) -> HexBytes:
    """Left-pad a 20-byte address to the 32-byte form the Gateway Wallet expects."""
    raw = HexBytes(addr(address))
    assert len(raw) == 20
    return HexBytes(b"\x00" * 12 + bytes(raw))


@dataclass(slots=True, frozen=True)
class BurnIntent:
    """Authorisation to burn on one domain and mint on another.

    Amounts are raw USDC units (6 decimals).
    """

    #: Address whose Gateway Wallet balance is burned
    depositor: HexAddress

    #: Raw amount to burn
    amount: int

    #: Replay protection, unique per depositor
    nonce: int

    #: Domain the balance is burned on
    source_domain: int

    #: Domain the USDC is minted on
    destination_domain: int

    #: Address receiving the minted USDC
    recipient: HexAddress

    #: Maximum fee Gateway may deduct, raw units
    max_fee: int

    #: UNIX timestamp, seconds, after which Gateway rejects the intent
    deadline: int

    def to_wire(self) -> dict:
        """Gateway API JSON form.

        Big integers are decimal strings so that JSON parsers with
        double precision numbers do not round them.
        """
        return {
            "depositor": self.depositor,
            "amount": str(self.amount),
            "nonce": str(self.nonce),
            "sourceDomain": self.source_domain,
            "destinationDomain": self.destination_domain,
            "recipient": "0x" + bytes(address_to_bytes32(self.recipient)).hex(),
            "maxFee": str(self.max_fee),
            "deadline": str(self.deadline),
        }


@dataclass(slots=True, frozen=True)
class SignedBurnIntent:
    """Burn intent with its EIP-712 signature."""

    burn_intent: BurnIntent

    #: 65 bytes r, s, v
    signature: bytes

    def to_wire(self) -> dict:
        return {
            "burnIntent": self.burn_intent.to_wire(),
            "signature": "0x" + bytes(self.signature).hex(),
        }


def build_burn_intent(
    depositor: HexAddress | str,
    source_domain: int,
    amount: int,
    destination_domain: int,
    recipient: HexAddress | str,
    max_fee: int = 0,
    deadline_horizon: int = DEFAULT_DEADLINE_HORIZON,
    clock: Clock = time.time,
    nonce_source: NonceSource = random_nonce,
    registry: "DomainRegistry | None" = None,
) -> BurnIntent:
    """Assemble a burn intent.

    No I/O. The deadline is ``int(clock()) + deadline_horizon``.

    :param depositor:
        Owner of the Gateway Wallet balance.

    :param source_domain:
        Domain to burn on.

    :param amount:
        Raw USDC amount, must be positive.

    :param destination_domain:
        Domain to mint on.

    :param recipient:
        Receiver of the minted USDC on the destination domain.

    :param max_fee:
        Maximum fee in raw units, non-negative.

    :param deadline_horizon:
        Intent lifetime in seconds.

    :param clock:
        Returns current UNIX time.

    :param nonce_source:
        Returns the intent nonce.

    :param registry:
        If given, both domains must be known to it.

    :raise InvalidAmount:
        Amount or fee outside uint256 range, or amount zero.

    :raise UnknownDomain:
        Domain missing from ``registry``.

    :raise ValueError:
        Malformed address, domain or horizon.
    """
    if type(amount) is not int or not (0 < amount <= UINT256_MAX):
        raise InvalidAmount(f"Burn intent amount must be a positive uint256 integer, got {amount!r}")

    if type(max_fee) is not int or not (0 <= max_fee <= UINT256_MAX):
        raise InvalidAmount(f"Burn intent max fee must be a non-negative uint256 integer, got {max_fee!r}")

    if deadline_horizon <= 0:
        raise ValueError(f"Deadline horizon must be positive, got {deadline_horizon}")

    for domain in (source_domain, destination_domain):
        if type(domain) is not int or not (0 <= domain <= UINT32_MAX):
            raise ValueError(f"Not a valid uint32 domain id: {domain!r}")
        if registry is not None:
            registry.lookup(domain)

    nonce = nonce_source()
    assert 0 <= nonce <= UINT256_MAX, f"Nonce out of uint256 range: {nonce}"

    return BurnIntent(
        depositor=addr(depositor),
        amount=amount,
        nonce=nonce,
        source_domain=source_domain,
        destination_domain=destination_domain,
        recipient=addr(recipient),
        max_fee=max_fee,
        deadline=int(clock()) + deadline_horizon,
    )
