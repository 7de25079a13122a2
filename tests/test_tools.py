import pytest

from otterscan_mcp.config import OtterscanConfig
from otterscan_mcp.otterscan_api import (
    ContractDeployment,
    OtterscanApiError,
    RetryExhaustedError,
    SubResult,
    TransactionAnalysis,
    TransactionPage,
)
from otterscan_mcp.otterscan_api.client import NodeUnreachableError, RpcError
from otterscan_mcp.tools import (
    get_api_level,
    get_block_details,
    get_block_transactions,
    get_block_with_transactions,
    get_contract_creator,
    get_contract_deployment,
    get_internal_operations,
    get_transaction_analysis,
    get_transaction_by_sender_and_nonce,
    get_transaction_error,
    get_transaction_trace,
    is_contract,
    list_address_transactions,
    search_transactions_after,
    search_transactions_before,
    validate_address,
)

ADDRESS = "0x" + "ab" * 20
TX_HASH = "0x" + "cd" * 32


def unreachable():
    return RetryExhaustedError(
        method="m", attempts=3, last_error=NodeUnreachableError("Node unreachable: refused")
    )


def rpc_failure():
    return RetryExhaustedError(method="m", attempts=3, last_error=RpcError("bad", code=-32000))


@pytest.mark.asyncio
async def test_api_level_success_and_errors():
    class StubClient:
        async def get_api_level(self):
            return 8

    assert await get_api_level(client=StubClient()) == {"apiLevel": 8}

    class DownClient:
        async def get_api_level(self):
            raise unreachable()

    assert await get_api_level(client=DownClient()) == {"error": "Node unreachable"}

    class WeirdClient:
        async def get_api_level(self):
            return "eight"

    assert await get_api_level(client=WeirdClient()) == {"error": "Unexpected response from node."}


def test_validate_address():
    assert validate_address(ADDRESS) == {"isValid": True}
    assert validate_address("0x123") == {"isValid": False}


@pytest.mark.asyncio
async def test_list_address_transactions_clamps_page_size_and_passes_range():
    captured = {}

    class StubClient:
        async def get_all_transactions_for_address(self, address, **kwargs):
            captured.update(kwargs, address=address)
            return [{"hash": "0x1", "blockNumber": "0x64"}]

    cfg = OtterscanConfig(max_page_size=50)
    result = await list_address_transactions(
        ADDRESS, from_block="100", to_block=200, page_size=500, client=StubClient(), config=cfg
    )
    assert result["count"] == 1
    assert result["fromBlock"] == 100
    assert captured == {"address": ADDRESS, "from_block": 100, "to_block": 200, "page_size": 50}


@pytest.mark.asyncio
async def test_list_address_transactions_rejects_bad_input():
    assert await list_address_transactions("nope") == {"error": "Invalid address."}
    assert await list_address_transactions(ADDRESS, from_block=300, to_block=200) == {
        "error": "Invalid block range."
    }
    assert await list_address_transactions(ADDRESS, from_block="latest") == {
        "error": "Invalid block range."
    }
    assert await list_address_transactions(ADDRESS, to_block=-5) == {"error": "Invalid block range."}


@pytest.mark.asyncio
async def test_list_address_transactions_error_mapping():
    class DownClient:
        async def get_all_transactions_for_address(self, address, **kwargs):
            raise unreachable()

    class RpcClient:
        async def get_all_transactions_for_address(self, address, **kwargs):
            raise rpc_failure()

    class MalformedClient:
        async def get_all_transactions_for_address(self, address, **kwargs):
            raise ValueError("not a quantity: None")

    assert await list_address_transactions(ADDRESS, client=DownClient()) == {"error": "Node unreachable"}
    assert await list_address_transactions(ADDRESS, client=RpcClient()) == {"error": "Otterscan API error."}
    assert await list_address_transactions(ADDRESS, client=MalformedClient()) == {
        "error": "Unexpected response from node."
    }


@pytest.mark.asyncio
async def test_search_before_and_after():
    calls = []

    class StubClient:
        async def search_transactions_before(self, address, block, page_size):
            calls.append(("before", block, page_size))
            return TransactionPage(txs=[{"hash": "0x1"}], first_page=True)

        async def search_transactions_after(self, address, block, page_size):
            calls.append(("after", block, page_size))
            return TransactionPage(txs=[], last_page=True)

    before = await search_transactions_before(ADDRESS, client=StubClient())
    after = await search_transactions_after(ADDRESS, block="0x10", page_size=5, client=StubClient())
    assert before["firstPage"] is True and before["txs"] == [{"hash": "0x1"}]
    assert after["lastPage"] is True
    assert calls == [("before", "latest", 25), ("after", "0x10", 5)]
    assert await search_transactions_before(ADDRESS, block="soon") == {"error": "Invalid block."}


@pytest.mark.asyncio
async def test_block_details_by_number_tag_and_hash():
    calls = []

    class StubClient:
        async def get_block_details(self, block):
            calls.append(("number", block))
            return {"block": {}}

        async def get_block_details_by_hash(self, block_hash):
            calls.append(("hash", block_hash))
            return {"block": {}}

    await get_block_details("17", client=StubClient())
    await get_block_details("latest", client=StubClient())
    await get_block_details(TX_HASH, client=StubClient())
    assert calls == [("number", 17), ("number", "latest"), ("hash", TX_HASH)]
    assert await get_block_details("-1") == {"error": "Invalid block."}


@pytest.mark.asyncio
async def test_block_details_not_found():
    class StubClient:
        async def get_block_details(self, block):
            return None

    assert await get_block_details(1, client=StubClient()) == {"error": "Block not found."}


@pytest.mark.asyncio
async def test_block_transactions_page_and_validation():
    class StubClient:
        async def get_block_transactions(self, block, page_number, page_size):
            return TransactionPage(txs=[{"hash": "0x1"}], last_page=True)

    result = await get_block_transactions(5, page=0, client=StubClient())
    assert result["lastPage"] is True
    assert await get_block_transactions(5, page=-1) == {"error": "Invalid page."}
    assert await get_block_transactions("five") == {"error": "Invalid block."}


@pytest.mark.asyncio
async def test_block_with_transactions_error_is_not_partial():
    class StubClient:
        async def get_block_with_transactions(self, block):
            raise rpc_failure()

    assert await get_block_with_transactions(5, client=StubClient()) == {"error": "Otterscan API error."}


@pytest.mark.asyncio
async def test_transaction_tools_validate_hash():
    for tool in (get_transaction_trace, get_internal_operations, get_transaction_error, get_transaction_analysis):
        assert await tool("0x1234") == {"error": "Invalid transaction hash."}


@pytest.mark.asyncio
async def test_transaction_trace_and_internal_operations():
    class StubClient:
        async def trace_transaction(self, tx_hash):
            return {"type": "CALL"}

        async def get_internal_operations(self, tx_hash):
            return None

        async def get_transaction_error(self, tx_hash):
            return "0x"

    assert await get_transaction_trace(TX_HASH, client=StubClient()) == {
        "hash": TX_HASH,
        "trace": {"type": "CALL"},
    }
    assert await get_internal_operations(TX_HASH, client=StubClient()) == []
    assert await get_transaction_error(TX_HASH, client=StubClient()) == {"hash": TX_HASH, "revertData": "0x"}


@pytest.mark.asyncio
async def test_transaction_analysis_reports_failures():
    class StubClient:
        async def get_transaction_analysis(self, tx_hash):
            return TransactionAnalysis(
                tx_hash=tx_hash,
                trace=SubResult(None, error="RPC call failed after 3 attempts: down"),
                internal_operations=SubResult([]),
                transaction_error=SubResult(None),
            )

    result = await get_transaction_analysis(TX_HASH, client=StubClient())
    assert "error" not in result
    assert result["failures"] == {"trace": "RPC call failed after 3 attempts: down"}


@pytest.mark.asyncio
async def test_sender_nonce_lookup():
    class StubClient:
        async def get_transaction_by_sender_and_nonce(self, sender, nonce):
            assert nonce == 26
            return TX_HASH

    assert await get_transaction_by_sender_and_nonce(ADDRESS, "0x1a", client=StubClient()) == {
        "sender": ADDRESS,
        "nonce": 26,
        "hash": TX_HASH,
    }
    assert await get_transaction_by_sender_and_nonce(ADDRESS, -1) == {"error": "Invalid nonce."}
    assert await get_transaction_by_sender_and_nonce("bad", 1) == {"error": "Invalid address."}


@pytest.mark.asyncio
async def test_contract_tools():
    class StubClient:
        async def get_contract_creator(self, address):
            return {"hash": TX_HASH, "creator": ADDRESS}

        async def is_contract(self, address, block):
            return True

        async def get_contract_deployment(self, address):
            return ContractDeployment(
                address=address,
                creator={"hash": TX_HASH, "creator": ADDRESS},
                transaction=SubResult({"hash": TX_HASH}),
                trace=SubResult(None, error="down"),
            )

    creator = await get_contract_creator(ADDRESS, client=StubClient())
    assert creator == {"address": ADDRESS, "hash": TX_HASH, "creator": ADDRESS}
    assert await is_contract(ADDRESS, client=StubClient()) == {"address": ADDRESS, "isContract": True}
    deployment = await get_contract_deployment(ADDRESS, client=StubClient())
    assert deployment["transaction"] == {"hash": TX_HASH}
    assert deployment["failures"] == {"trace": "down"}


@pytest.mark.asyncio
async def test_contract_creator_missing_and_generic_api_error():
    class NoCreator:
        async def get_contract_creator(self, address):
            return None

        async def get_contract_deployment(self, address):
            return ContractDeployment(
                address=address, creator=None, transaction=SubResult(None), trace=SubResult(None)
            )

    class Broken:
        async def get_contract_creator(self, address):
            raise OtterscanApiError("Unexpected response from node.")

    assert await get_contract_creator(ADDRESS, client=NoCreator()) == {"error": "Contract creator not found."}
    assert await get_contract_deployment(ADDRESS, client=NoCreator()) == {"error": "Contract creator not found."}
    assert await get_contract_creator(ADDRESS, client=Broken()) == {"error": "Unexpected response from node."}


@pytest.mark.asyncio
async def test_non_ascii_digits_are_invalid_input():
    assert await get_block_details("²") == {"error": "Invalid block."}
    assert await get_block_transactions("²") == {"error": "Invalid block."}
    assert await list_address_transactions(ADDRESS, to_block="²") == {"error": "Invalid block range."}
    assert await get_transaction_by_sender_and_nonce(ADDRESS, "٣") == {"error": "Invalid nonce."}


@pytest.mark.asyncio
async def test_block_range_compares_hex_and_decimal_bounds():
    assert await list_address_transactions(ADDRESS, from_block="0x12c", to_block="200") == {
        "error": "Invalid block range."
    }

    class StubClient:
        async def get_all_transactions_for_address(self, address, **kwargs):
            return []

    result = await list_address_transactions(
        ADDRESS, from_block="0x64", to_block="100", client=StubClient()
    )
    assert result["count"] == 0
