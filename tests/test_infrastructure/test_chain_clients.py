"""Tests for the chain clients and the chain client factory.

The Web3 client runs against a mocked Web3 instance; no RPC node is needed.
"""

from __future__ import annotations

import re
import uuid
from unittest.mock import MagicMock

import pytest

from blue_carbon_registry.config import Settings
from blue_carbon_registry.domain.exceptions import ChainError
from blue_carbon_registry.domain.ports import ChainClient
from blue_carbon_registry.infrastructure.chain import (
    SimulatedChainClient,
    Web3ChainClient,
    create_chain_client,
    placeholder_tx_hash,
)
from blue_carbon_registry.infrastructure.chain.web3_client import project_id_to_uint

TX_HASH = re.compile(r"^0x[0-9a-f]{64}$")
CONTRACT = "0x5fbdb2315678afecb367f032d93f642f64180aa3"
RECIPIENT = "0x742d35cc6634c0532925a3b844bc9e7595f2bd18"
PRIVATE_KEY = "0x" + "11" * 32


def mock_w3(status: int = 1, token_id: int = 7) -> MagicMock:
    w3 = MagicMock()
    w3.eth.get_transaction_count.return_value = 3
    w3.eth.send_raw_transaction.return_value = bytes.fromhex("ab" * 32)
    w3.eth.wait_for_transaction_receipt.return_value = {"status": status}
    contract = w3.eth.contract.return_value
    contract.events.CreditMinted.return_value.process_receipt.return_value = [
        {"args": {"tokenId": token_id}}
    ]
    return w3


def web3_client(w3: MagicMock, max_attempts: int = 1) -> Web3ChainClient:
    return Web3ChainClient(
        rpc_url="http://localhost:8545",
        private_key=PRIVATE_KEY,
        contract_address=CONTRACT,
        chain_id=80001,
        network="mumbai",
        max_attempts=max_attempts,
        backoff_seconds=0,
        w3=w3,
    )


class TestSimulatedChainClient:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(SimulatedChainClient(), ChainClient)

    def test_placeholder_hash_shape(self) -> None:
        assert TX_HASH.match(placeholder_tx_hash())
        assert placeholder_tx_hash() != placeholder_tx_hash()

    @pytest.mark.asyncio
    async def test_sequential_token_ids(self) -> None:
        client = SimulatedChainClient()
        first = await client.mint_credit(RECIPIENT, str(uuid.uuid4()), 10, 2024, "VCS")
        second = await client.mint_credit(RECIPIENT, str(uuid.uuid4()), 10, 2024, "VCS")
        assert (first.token_id, second.token_id) == ("0", "1")
        assert TX_HASH.match(first.transaction_hash)

    @pytest.mark.asyncio
    async def test_transfer_and_retire_keep_token(self) -> None:
        client = SimulatedChainClient()
        transfer = await client.transfer_credit(RECIPIENT, CONTRACT, "4")
        retire = await client.retire_credit(RECIPIENT, "4", "corporate neutrality pledge")
        assert transfer.token_id == retire.token_id == "4"
        assert transfer.transaction_hash != retire.transaction_hash

    @pytest.mark.asyncio
    async def test_network_status(self) -> None:
        status = await SimulatedChainClient(network="test", chain_id=1337).network_status()
        assert status["connected"] is True
        assert status["simulated"] is True
        assert status["chain_id"] == 1337


class TestWeb3ChainClient:
    def test_requires_key_and_contract(self) -> None:
        with pytest.raises(ValueError):
            Web3ChainClient("http://localhost:8545", "", CONTRACT, w3=MagicMock())
        with pytest.raises(ValueError):
            Web3ChainClient("http://localhost:8545", PRIVATE_KEY, "", w3=MagicMock())

    def test_project_id_maps_to_uint(self) -> None:
        project_id = uuid.uuid4()
        assert project_id_to_uint(str(project_id)) == project_id.int

    @pytest.mark.asyncio
    async def test_mint_reads_token_from_event(self) -> None:
        w3 = mock_w3(token_id=42)
        client = web3_client(w3)
        project_id = str(uuid.uuid4())

        receipt = await client.mint_credit(
            RECIPIENT, project_id, 500, 2024, "VCS", "metadata-ref", "Sundarbans", "MANGROVE"
        )

        assert receipt.token_id == "42"
        assert receipt.transaction_hash == "0x" + "ab" * 32
        args = w3.eth.contract.return_value.functions.mintCarbonCredit.call_args.args
        assert args[1] == project_id_to_uint(project_id)
        assert args[2:] == (500, 2024, "Sundarbans", "MANGROVE", "VCS", "metadata-ref")
        w3.eth.account.sign_transaction.assert_called_once()

    @pytest.mark.asyncio
    async def test_reverted_transaction(self) -> None:
        client = web3_client(mock_w3(status=0))
        with pytest.raises(ChainError, match="reverted") as exc_info:
            await client.retire_credit(RECIPIENT, "7", "corporate neutrality pledge")
        assert exc_info.value.tx_hash == "0x" + "ab" * 32

    @pytest.mark.asyncio
    async def test_rpc_failure_becomes_chain_error(self) -> None:
        w3 = mock_w3()
        w3.eth.send_raw_transaction.side_effect = ConnectionError("connection refused")
        with pytest.raises(ChainError, match="transfer failed"):
            await web3_client(w3).transfer_credit(RECIPIENT, RECIPIENT, "7")

    @pytest.mark.asyncio
    async def test_receipt_wait_retried_without_resending(self) -> None:
        w3 = mock_w3()
        w3.eth.wait_for_transaction_receipt.side_effect = [
            ConnectionError("connection reset"),
            {"status": 1},
        ]

        receipt = await web3_client(w3, max_attempts=3).transfer_credit(
            RECIPIENT, RECIPIENT, "7"
        )

        assert receipt.transaction_hash == "0x" + "ab" * 32
        assert w3.eth.send_raw_transaction.call_count == 1
        assert w3.eth.wait_for_transaction_receipt.call_count == 2

    @pytest.mark.asyncio
    async def test_failed_send_is_not_retried(self) -> None:
        w3 = mock_w3()
        w3.eth.send_raw_transaction.side_effect = ConnectionError("connection refused")
        with pytest.raises(ChainError):
            await web3_client(w3, max_attempts=3).mint_credit(
                RECIPIENT, str(uuid.uuid4()), 500, 2024, "VCS"
            )
        assert w3.eth.send_raw_transaction.call_count == 1

    @pytest.mark.asyncio
    async def test_nonce_lookup_retried_before_send(self) -> None:
        w3 = mock_w3()
        w3.eth.get_transaction_count.side_effect = [ConnectionError("timeout"), 3]
        await web3_client(w3, max_attempts=3).retire_credit(
            RECIPIENT, "7", "corporate neutrality pledge"
        )
        assert w3.eth.get_transaction_count.call_count == 2
        assert w3.eth.send_raw_transaction.call_count == 1

    @pytest.mark.asyncio
    async def test_lost_receipt_keeps_tx_hash(self) -> None:
        w3 = mock_w3()
        w3.eth.wait_for_transaction_receipt.side_effect = ConnectionError("gone")
        with pytest.raises(ChainError) as exc_info:
            await web3_client(w3, max_attempts=2).transfer_credit(RECIPIENT, RECIPIENT, "7")
        assert exc_info.value.tx_hash == "0x" + "ab" * 32
        assert w3.eth.send_raw_transaction.call_count == 1

    @pytest.mark.asyncio
    async def test_missing_token_id(self) -> None:
        client = web3_client(mock_w3())
        with pytest.raises(ChainError):
            await client.transfer_credit(RECIPIENT, RECIPIENT, None)
        with pytest.raises(ChainError):
            await client.retire_credit(RECIPIENT, None, "corporate neutrality pledge")

    @pytest.mark.asyncio
    async def test_network_status(self) -> None:
        w3 = mock_w3()
        w3.is_connected.return_value = True
        w3.eth.block_number = 123
        status = await web3_client(w3).network_status()
        assert status["connected"] is True
        assert status["simulated"] is False
        assert status["block_height"] == 123
        assert status["chain_id"] == 80001
        assert status["contract"].lower() == CONTRACT


class TestChainClientFactory:
    def test_simulated_mode(self) -> None:
        client = create_chain_client(Settings(_env_file=None, chain_mode="simulated"))
        assert isinstance(client, SimulatedChainClient)

    def test_web3_mode_requires_rpc_url(self) -> None:
        settings = Settings(_env_file=None, chain_mode="web3", web3_rpc_url="")
        with pytest.raises(ValueError, match="WEB3_RPC_URL"):
            create_chain_client(settings)

    def test_web3_mode_requires_contract(self) -> None:
        settings = Settings(
            _env_file=None,
            chain_mode="web3",
            web3_rpc_url="http://localhost:8545",
            chain_private_key=PRIVATE_KEY,
            carbon_credit_contract="",
        )
        with pytest.raises(ValueError, match="contract address"):
            create_chain_client(settings)
