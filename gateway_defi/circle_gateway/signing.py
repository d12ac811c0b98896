"""EIP-712 signing of burn intents.

The typed data domain binds each signature to the Gateway Wallet contract
and the chain of the intent's source domain, so a signature cannot be
replayed against another chain or contract.

The cryptographic signature is delegated to a :py:class:`TypedDataSigningCapability`.
:py:class:`TypedDataSigner` never sees key material, it only knows how
to shape the payload.

Example::

    from eth_account import Account

    from gateway_defi.circle_gateway.signing import LocalAccountSigner, TypedDataSigner

    signer = TypedDataSigner(registry, LocalAccountSigner(Account.from_key(private_key)))
    signed = signer.sign_burn_intent(intent)
"""

import logging
import time
from typing import Protocol

from eth_account import messages as eth_messages
from eth_account.signers.local import LocalAccount
from eth_typing import HexAddress

from gateway_defi.circle_gateway.burn_intent import BurnIntent, Clock, SignedBurnIntent, address_to_bytes32
from gateway_defi.circle_gateway.constants import GATEWAY_WALLET_EIP712_NAME, GATEWAY_WALLET_EIP712_VERSION
from gateway_defi.circle_gateway.domains import DomainRegistry
from gateway_defi.circle_gateway.errors import IntentExpired, SigningUnavailable

logger = logging.getLogger(__name__)

#: EIP-712 domain type
EIP712_DOMAIN_TYPE = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

#: EIP-712 types for Gateway Wallet burn intents
BURN_INTENT_TYPES = {
    "EIP712Domain": EIP712_DOMAIN_TYPE,
    "BurnIntent": [
        {"name": "depositor", "type": "address"},
        {"name": "amount", "type": "uint256"},
        {"name": "nonce", "type": "uint256"},
        {"name": "sourceDomain", "type": "uint32"},
        {"name": "destinationDomain", "type": "uint32"},
        {"name": "recipient", "type": "bytes32"},
        {"name": "maxFee", "type": "uint256"},
        {"name": "deadline", "type": "uint256"},
    ],
}


class TypedDataSigningCapability(Protocol):
    """Something that can produce an EIP-712 signature."""

    address: HexAddress

    def sign_typed_data(self, domain: dict, types: dict, primary_type: str, message: dict) -> bytes: ...


class LocalAccountSigner:
    """EIP-712 signing with an in-process private key."""

    def __init__(self, account: LocalAccount):
        self.account = account
        self.address = account.address

    def __repr__(self) -> str:
        return f"<LocalAccountSigner {self.address}>"

    def sign_typed_data(self, domain: dict, types: dict, primary_type: str, message: dict) -> bytes:
        full_message = {
            "domain": domain,
            "types": types,
            "primaryType": primary_type,
            "message": message,
        }
        structured_data = eth_messages.encode_typed_data(full_message=full_message)
        signed = self.account.sign_message(structured_data)
        return bytes(signed.signature)


def create_burn_intent_typed_data(
    intent: BurnIntent,
    wallet_contract: HexAddress,
    chain_id: int,
) -> dict:
    """Build the EIP-712 payload of a burn intent.

    :param intent:
        Intent to sign.

    :param wallet_contract:
        Gateway Wallet on the source domain, the verifying contract.

    :param chain_id:
        EVM chain id of the source domain.

    :return:
        Dict with ``domain``, ``types``, ``primaryType`` and ``message``,
        as accepted by :py:func:`eth_account.messages.encode_typed_data`.
    """
    return {
        "domain": {
            "name": GATEWAY_WALLET_EIP712_NAME,
            "version": GATEWAY_WALLET_EIP712_VERSION,
            "chainId": chain_id,
            "verifyingContract": wallet_contract,
        },
        "types": BURN_INTENT_TYPES,
        "primaryType": "BurnIntent",
        "message": {
            "depositor": intent.depositor,
            "amount": intent.amount,
            "nonce": intent.nonce,
            "sourceDomain": intent.source_domain,
            "destinationDomain": intent.destination_domain,
            "recipient": address_to_bytes32(intent.recipient),
            "maxFee": intent.max_fee,
            "deadline": intent.deadline,
        },
    }


class TypedDataSigner:
    """Sign burn intents against the registry's verified contracts."""

    def __init__(
        self,
        registry: DomainRegistry,
        signer: TypedDataSigningCapability | None = None,
        clock: Clock = time.time,
    ):
        self.registry = registry
        self.signer = signer
        self.clock = clock

    def bind(self, signer: TypedDataSigningCapability):
        """Replace the signing capability."""
        if self.signer is not None:
            logger.info("Replacing burn intent signer %s with %s", self.signer.address, signer.address)
        self.signer = signer

    def sign_burn_intent(self, intent: BurnIntent) -> SignedBurnIntent:
        """Sign one burn intent.

        :raise SigningUnavailable:
            No signing capability bound.

        :raise IntentExpired:
            Deadline already passed.

        :raise UnknownDomain:
            Source domain not in the registry.

        :raise UntrustedContract:
            Source domain wallet contract not verified by a registry refresh.
        """
        if self.signer is None:
            raise SigningUnavailable("No signer configured, initialise the service with a private key first")

        now = self.clock()
        if intent.deadline <= now:
            raise IntentExpired(f"Burn intent deadline {intent.deadline} is not after current time {now}")

        domain = self.registry.lookup(intent.source_domain)
        wallet_contract = self.registry.get_trusted_wallet_contract(intent.source_domain)

        typed_data = create_burn_intent_typed_data(intent, wallet_contract, domain.chain_id)
        signature = self.signer.sign_typed_data(
            typed_data["domain"],
            typed_data["types"],
            typed_data["primaryType"],
            typed_data["message"],
        )

        logger.info(
            "Signed burn intent %s -> %s, amount %d, nonce %d, depositor %s, signer %s",
            domain.chain_name,
            intent.destination_domain,
            intent.amount,
            intent.nonce,
            intent.depositor,
            self.signer.address,
        )
        return SignedBurnIntent(burn_intent=intent, signature=signature)
