"""Tests for SolanaRPCClient: JSON-RPC communication."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from solhistory.domain.models import LegacyMessage, VersionedMessage
from solhistory.domain.tokens import TOKEN_PROGRAM_ID
from solhistory.exceptions import InvalidEndpointError, RateLimitedError, RPCRequestError
from solhistory.infra.solana.rpc_client import SolanaRPCClient

OWNER = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"
USDC = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
TOKEN_ACCOUNT = "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"


@pytest.fixture()
def mock_http():
    return AsyncMock()


@pytest.fixture()
def rpc(mock_http):
    return SolanaRPCClient(rpc_url="https://api.mainnet-beta.solana.com", http_client=mock_http)


def _mock_response(data: dict, status_code: int = 200):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = data
    return resp


def _sent_params(mock_http) -> list:
    call_args = mock_http.post.call_args
    payload = call_args[1]["json"] if "json" in call_args[1] else call_args[0][1]
    return payload["params"]


class TestConstruction:
    @pytest.mark.parametrize("url", ["not a url", "ftp://example.com", "https://", ""])
    def test_malformed_url_rejected(self, mock_http, url):
        with pytest.raises(InvalidEndpointError):
            SolanaRPCClient(rpc_url=url, http_client=mock_http)

    def test_url_exposed(self, rpc):
        assert rpc.url == "https://api.mainnet-beta.solana.com"


class TestGetSignatures:
    async def test_returns_signatures(self, rpc, mock_http):
        sigs = [
            {"signature": "sig1", "slot": 100, "blockTime": 1700000001, "err": None},
            {"signature": "sig2", "slot": 99, "blockTime": 1700000000, "err": None},
        ]
        mock_http.post.return_value = _mock_response({"jsonrpc": "2.0", "id": 1, "result": sigs})

        result = await rpc.get_signatures_for_address(OWNER, limit=2)
        assert [s.signature for s in result] == ["sig1", "sig2"]
        assert result[0].block_time == 1700000001
        assert result[1].slot == 99

    async def test_none_result(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response({"jsonrpc": "2.0", "id": 1, "result": None})

        assert await rpc.get_signatures_for_address(OWNER) == []

    async def test_pagination_params(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response({"jsonrpc": "2.0", "id": 1, "result": []})

        await rpc.get_signatures_for_address(OWNER, limit=20, before="prevSig")
        params = _sent_params(mock_http)
        assert params[0] == OWNER
        assert params[1] == {"limit": 20, "before": "prevSig"}

    async def test_before_omitted_when_none(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response({"jsonrpc": "2.0", "id": 1, "result": []})

        await rpc.get_signatures_for_address(OWNER, limit=5)
        assert _sent_params(mock_http)[1] == {"limit": 5}


class TestGetTransaction:
    async def test_legacy_transaction(self, rpc, mock_http):
        tx_data = {
            "slot": 100,
            "blockTime": 1700000000,
            "transaction": {"signatures": ["someSig123"], "message": {"accountKeys": [OWNER, USDC]}},
            "meta": {"fee": 5000, "preBalances": [100, 0], "postBalances": [95, 0]},
        }
        mock_http.post.return_value = _mock_response({"jsonrpc": "2.0", "id": 1, "result": tx_data})

        result = await rpc.get_transaction("someSig123")
        assert result is not None
        assert result.signature == "someSig123"
        assert isinstance(result.transaction.message, LegacyMessage)
        assert result.meta["fee"] == 5000

        opts = _sent_params(mock_http)[1]
        assert opts["maxSupportedTransactionVersion"] == 0
        assert opts["encoding"] == "json"

    async def test_versioned_transaction(self, rpc, mock_http):
        tx_data = {
            "version": 0,
            "blockTime": 1700000000,
            "transaction": {
                "signatures": ["v0Sig"],
                "message": {"accountKeys": [OWNER], "addressTableLookups": [{"accountKey": USDC}]},
            },
            "meta": {"preBalances": [1], "postBalances": [1]},
        }
        mock_http.post.return_value = _mock_response({"jsonrpc": "2.0", "id": 1, "result": tx_data})

        result = await rpc.get_transaction("v0Sig")
        assert isinstance(result.transaction.message, VersionedMessage)
        assert result.transaction.message.version == 0

    async def test_not_found_returns_none(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response({"jsonrpc": "2.0", "id": 1, "result": None})

        assert await rpc.get_transaction("missingTx") is None


class TestBalancesAndTokenAccounts:
    async def test_get_balance(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response(
            {"jsonrpc": "2.0", "id": 1, "result": {"context": {"slot": 1}, "value": 2_500_000_000}}
        )

        assert await rpc.get_balance(OWNER) == 2_500_000_000

    async def test_token_accounts_by_mint(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response({
            "jsonrpc": "2.0",
            "id": 1,
            "result": {
                "context": {"slot": 1},
                "value": [{
                    "pubkey": TOKEN_ACCOUNT,
                    "account": {"data": {"parsed": {"info": {
                        "mint": USDC,
                        "owner": OWNER,
                        "tokenAmount": {"amount": "1500000", "decimals": 6, "uiAmount": 1.5, "uiAmountString": "1.5"},
                    }}}},
                }],
            },
        })

        accounts = await rpc.get_token_accounts_by_owner(OWNER, TOKEN_PROGRAM_ID, mint=USDC)
        assert len(accounts) == 1
        assert str(accounts[0].pubkey) == TOKEN_ACCOUNT
        assert str(accounts[0].mint) == USDC
        assert accounts[0].ui_amount == Decimal("1.5")

        params = _sent_params(mock_http)
        assert params[1] == {"mint": USDC}
        assert params[2] == {"encoding": "jsonParsed"}

    async def test_token_accounts_by_program(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response(
            {"jsonrpc": "2.0", "id": 1, "result": {"context": {"slot": 1}, "value": []}}
        )

        assert await rpc.get_token_accounts_by_owner(OWNER, TOKEN_PROGRAM_ID) == []
        assert _sent_params(mock_http)[1] == {"programId": str(TOKEN_PROGRAM_ID)}


class TestRPCErrors:
    async def test_http_429_is_rate_limit(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response({}, status_code=429)

        with pytest.raises(RateLimitedError):
            await rpc.get_balance(OWNER)
        assert mock_http.post.call_count == 1

    async def test_json_rpc_429_is_rate_limit(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response({
            "jsonrpc": "2.0", "id": 1,
            "error": {"code": 429, "message": "Too many requests for a specific RPC call"},
        })

        with pytest.raises(RateLimitedError):
            await rpc.get_transaction("sig")

    async def test_rpc_error_raises_without_retry(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response({
            "jsonrpc": "2.0", "id": 1,
            "error": {"code": -32600, "message": "Invalid request"},
        })

        with pytest.raises(RPCRequestError, match="Invalid request") as exc_info:
            await rpc.get_signatures_for_address(OWNER)

        assert exc_info.value.code == -32600
        assert mock_http.post.call_count == 1

    async def test_http_server_error(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response({}, status_code=503)

        with pytest.raises(RPCRequestError) as exc_info:
            await rpc.get_balance(OWNER)
        assert exc_info.value.code == 503

    async def test_transport_error_wrapped(self, rpc, mock_http):
        mock_http.post.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(RPCRequestError, match="transport error"):
            await rpc.get_balance(OWNER)
