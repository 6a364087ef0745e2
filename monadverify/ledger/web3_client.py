"""
Web3 Ledger Client
==================

JSON-RPC implementation of the ledger and wallet interfaces using web3.py's
async API and eth-account for local signing.

Version: 0.1.0
"""

from typing import Any

from eth_account import Account
from web3 import AsyncWeb3
from web3.exceptions import ContractLogicError, TimeExhausted

from monadverify.config import LedgerMode, settings
from monadverify.errors import (
    ConfirmationTimeoutError,
    LedgerError,
    RateLimitError,
    TransactionError,
    WalletNotConnectedError,
)
from monadverify.ledger.abi import COMPLETED_SIGNATURE, MONAD_VERIFY_ABI, REQUESTED_SIGNATURE
from monadverify.ledger.client import LedgerClient, Wallet
from monadverify.logging import get_logger
from monadverify.models.attestation import Attestation
from monadverify.models.ledger import (
    ContractCall,
    ContractStats,
    EventName,
    LedgerEvent,
    TransactionHandle,
    TransactionReceipt,
    UserProfile,
)

logger = get_logger(__name__)

EVENT_SIGNATURES = {
    EventName.VERIFICATION_REQUESTED: REQUESTED_SIGNATURE,
    EventName.VERIFICATION_COMPLETED: COMPLETED_SIGNATURE,
}


def is_rate_limited(exc: BaseException) -> bool:
    """Detect HTTP 429 / provider throttling across transport libraries."""
    if getattr(exc, "status", None) == 429 or getattr(exc, "code", None) == 429:
        return True
    response = getattr(exc, "response", None)
    if response is not None and getattr(response, "status_code", None) == 429:
        return True
    message = str(exc).lower()
    return "429" in message or "rate limit" in message or "too many requests" in message


def address_topic(address: str) -> str:
    """Left-pad an address into a 32-byte indexed topic."""
    return "0x" + address.lower().removeprefix("0x").rjust(64, "0")


class Web3LedgerClient(LedgerClient):
    """
    Ledger client backed by an EVM JSON-RPC endpoint.

    Usage:
        client = Web3LedgerClient(mode=LedgerMode.TESTNET)
        await client.connect()
        height = await client.get_block_number()
    """

    def __init__(
        self,
        mode: LedgerMode = LedgerMode.TESTNET,
        rpc_url: str | None = None,
        contract_address: str | None = None,
    ) -> None:
        self._mode = mode
        network = settings.network
        if mode == LedgerMode.MAINNET:
            self.rpc_url = rpc_url or network.mainnet_rpc_url
            self.contract_address = contract_address or network.mainnet_contract_address
            self.expected_chain_id = network.mainnet_chain_id
        else:
            self.rpc_url = rpc_url or network.rpc_url
            self.contract_address = contract_address or network.contract_address
            self.expected_chain_id = network.chain_id

        if not self.contract_address:
            raise ValueError(f"No MonadVerify contract address configured for {mode.value}")

        self._w3: AsyncWeb3 | None = None
        self._contract: Any = None

    @property
    def mode(self) -> LedgerMode:
        return self._mode

    @property
    def w3(self) -> AsyncWeb3:
        if self._w3 is None:
            raise LedgerError("Ledger client not connected")
        return self._w3

    @property
    def contract(self) -> Any:
        if self._contract is None:
            raise LedgerError("Ledger client not connected")
        return self._contract

    async def connect(self) -> None:
        self._w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(self.rpc_url))
        self._contract = self._w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(self.contract_address),
            abi=MONAD_VERIFY_ABI,
        )
        chain_id = await self._w3.eth.chain_id
        logger.info(
            "web3_ledger_connected",
            rpc_url=self.rpc_url,
            chain_id=chain_id,
            contract=self.contract_address,
        )

    async def reconnect(self, rpc_url: str, contract_address: str, chain_id: int) -> None:
        """Point the client at another network."""
        await self.disconnect()
        self.rpc_url = rpc_url
        self.contract_address = contract_address
        self.expected_chain_id = chain_id
        await self.connect()

    async def disconnect(self) -> None:
        if self._w3 is not None:
            await self._w3.provider.disconnect()
        self._w3 = None
        self._contract = None
        logger.info("web3_ledger_disconnected")

    async def health_check(self) -> dict[str, Any]:
        try:
            block_number = await self.w3.eth.block_number
            chain_id = await self.w3.eth.chain_id
            return {
                "status": "healthy" if chain_id == self.expected_chain_id else "degraded",
                "mode": self.mode.value,
                "chain_id": chain_id,
                "block_number": block_number,
            }
        except Exception as e:
            logger.error("web3_health_check_failed", error=str(e))
            return {"status": "unhealthy", "mode": self.mode.value, "error": str(e)}

    # =========================================================================
    # Event Log
    # =========================================================================

    async def get_block_number(self) -> int:
        try:
            return int(await self.w3.eth.block_number)
        except Exception as e:
            raise self._translate(e) from e

    async def get_logs(
        self,
        event: EventName,
        user: str,
        from_block: int,
        to_block: int,
    ) -> list[LedgerEvent]:
        topic0 = AsyncWeb3.to_hex(AsyncWeb3.keccak(text=EVENT_SIGNATURES[event]))
        params = {
            "address": AsyncWeb3.to_checksum_address(self.contract_address),
            "fromBlock": from_block,
            "toBlock": to_block,
            "topics": [topic0, address_topic(user)],
        }
        try:
            raw_logs = await self.w3.eth.get_logs(params)
        except Exception as e:
            raise self._translate(e) from e

        decoder = getattr(self.contract.events, event.value)()
        return [self._decode(event, decoder.process_log(log)) for log in raw_logs]

    @staticmethod
    def _decode(event: EventName, data: Any) -> LedgerEvent:
        args = data["args"]
        request_id = args.get("requestId")
        return LedgerEvent(
            event=event,
            user=args["user"],
            request_id=AsyncWeb3.to_hex(request_id) if request_id is not None else None,
            data_type=args.get("dataType"),
            success=args.get("success"),
            timestamp=args.get("timestamp"),
            block_number=data["blockNumber"],
            tx_hash=AsyncWeb3.to_hex(data["transactionHash"]),
            log_index=data["logIndex"],
        )

    @staticmethod
    def _translate(exc: Exception) -> LedgerError:
        if is_rate_limited(exc):
            return RateLimitError(str(exc))
        return LedgerError(str(exc))

    # =========================================================================
    # Contract Reads
    # =========================================================================

    async def get_user_profile(self, user: str) -> UserProfile:
        try:
            count, last_time, verified = await self.contract.functions.getUserProfile(
                AsyncWeb3.to_checksum_address(user)
            ).call()
        except Exception as e:
            raise self._translate(e) from e
        return UserProfile(
            verification_count=count,
            last_verification_time=last_time,
            is_verified=verified,
        )

    async def get_contract_stats(self) -> ContractStats:
        try:
            users, verifications, balance = await self.contract.functions.getContractStats().call()
        except Exception as e:
            raise self._translate(e) from e
        return ContractStats(
            total_users=users,
            total_verifications=verifications,
            contract_balance=balance,
        )

    async def get_verification_fee(self) -> int:
        try:
            return int(await self.contract.functions.verificationFee().call())
        except Exception as e:
            raise self._translate(e) from e

    def create_wallet(self, address: str | None = None) -> "Web3Wallet":
        private_key = settings.ledger.private_key.get_secret_value()
        wallet = Web3Wallet(self, private_key or None)
        if address and wallet.address and wallet.address.lower() != address.lower():
            raise ValueError("Configured private key does not match the requested address")
        return wallet


class Web3Wallet(Wallet):
    """Local-key wallet that signs with eth-account and broadcasts raw transactions."""

    def __init__(self, client: Web3LedgerClient, private_key: str | None) -> None:
        self._client = client
        self._account = Account.from_key(private_key) if private_key else None

    @property
    def address(self) -> str | None:
        return self._account.address if self._account else None

    async def get_chain_id(self) -> int:
        return int(await self._client.w3.eth.chain_id)

    async def switch_chain(self, chain_id: int) -> None:
        network = settings.network
        targets = {
            network.chain_id: (network.rpc_url, network.contract_address),
            network.mainnet_chain_id: (network.mainnet_rpc_url, network.mainnet_contract_address),
        }
        if chain_id not in targets or not targets[chain_id][1]:
            raise LedgerError(f"No RPC endpoint configured for chain {chain_id}")
        rpc_url, contract_address = targets[chain_id]
        await self._client.reconnect(rpc_url, contract_address, chain_id)

    async def send_transaction(self, call: ContractCall) -> TransactionHandle:
        if self._account is None:
            raise WalletNotConnectedError("No private key configured")

        w3 = self._client.w3
        args = [a.to_contract_tuple() if isinstance(a, Attestation) else a for a in call.args]

        try:
            function = getattr(self._client.contract.functions, call.function.value)(*args)
            tx = await function.build_transaction(
                {
                    "from": self._account.address,
                    "value": call.value,
                    "nonce": await w3.eth.get_transaction_count(self._account.address),
                    "gas": settings.ledger.gas_limit,
                    "chainId": await w3.eth.chain_id,
                }
            )
            signed = self._account.sign_transaction(tx)
            tx_hash = await w3.eth.send_raw_transaction(signed.raw_transaction)
        except ContractLogicError as e:
            raise TransactionError(f"Execution reverted: {e}") from e
        except Exception as e:
            raise TransactionError(str(e)) from e

        handle = TransactionHandle(
            tx_hash=AsyncWeb3.to_hex(tx_hash),
            function=call.function,
            sender=self._account.address.lower(),
        )
        logger.info("web3_tx_sent", tx_hash=handle.tx_hash, function=call.function.value)
        return handle

    async def wait_for_confirmation(
        self,
        handle: TransactionHandle,
        timeout: float | None = None,
    ) -> TransactionReceipt:
        try:
            receipt = await self._client.w3.eth.wait_for_transaction_receipt(
                handle.tx_hash,
                timeout=timeout if timeout is not None else float("inf"),
            )
        except TimeExhausted as e:
            raise ConfirmationTimeoutError(
                f"Transaction {handle.tx_hash} not confirmed within {timeout}s",
                tx_hash=handle.tx_hash,
            ) from e
        except Exception as e:
            raise TransactionError(str(e), tx_hash=handle.tx_hash) from e

        return TransactionReceipt(
            tx_hash=handle.tx_hash,
            block_number=receipt["blockNumber"],
            success=receipt["status"] == 1,
            gas_used=receipt.get("gasUsed", 0),
        )
