import itertools
import os
import sys

import pytest

# Ensure repository root is on sys.path before importing project modules.
repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

from tron_mcp.config import TronConfig  # noqa: E402
from tron_mcp.envelope import EnvelopeFactory  # noqa: E402
from tron_mcp.mcp import Dispatcher  # noqa: E402
from tron_mcp.metrics import default_metrics  # noqa: E402
from tron_mcp.tools import ToolContext  # noqa: E402
from tron_mcp.tron_api import UpstreamCallResult  # noqa: E402

FIXED_TS = 1_700_000_000_000


@pytest.fixture(autouse=True)
def reset_metrics():
    default_metrics.reset()
    yield
    default_metrics.reset()


@pytest.fixture
def fixed_envelopes():
    """Envelope factory with a frozen clock and sequential request ids."""
    counter = itertools.count(1)
    return EnvelopeFactory(clock=lambda: FIXED_TS, id_factory=lambda: f"req-{next(counter)}")


class StubUpstream:
    """
    Records calls and replays canned payloads keyed by method name.

    A canned value that is an exception instance is raised instead.
    """

    source = "stub"

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []

    async def _reply(self, method, *args, include_meta=False):
        self.calls.append((method, args))
        value = self.responses.get(method, {})
        if isinstance(value, BaseException):
            raise value
        if include_meta:
            return UpstreamCallResult(
                data=value,
                meta={"url": f"https://stub/{method}", "status": 200, "contentType": "application/json"},
            )
        return value


class StubTronGrid(StubUpstream):
    source = "trongrid"

    async def get_now_block(self, *, include_meta=False):
        return await self._reply("get_now_block", include_meta=include_meta)

    async def get_chain_parameters(self, *, include_meta=False):
        return await self._reply("get_chain_parameters", include_meta=include_meta)

    async def get_account(self, address, *, include_meta=False):
        return await self._reply("get_account", address, include_meta=include_meta)

    async def get_trc20_balance(self, address, contract, *, include_meta=False):
        return await self._reply("get_trc20_balance", address, contract, include_meta=include_meta)

    async def get_account_transactions(self, address, *, include_meta=False):
        return await self._reply("get_account_transactions", address, include_meta=include_meta)

    async def create_transfer_transaction(self, owner, to, amount_sun, *, include_meta=False):
        return await self._reply(
            "create_transfer_transaction", owner, to, amount_sun, include_meta=include_meta
        )


class StubTronScan(StubUpstream):
    source = "tronscan"

    async def get_transaction_info(self, txid, *, include_meta=False):
        return await self._reply("get_transaction_info", txid, include_meta=include_meta)


@pytest.fixture
def trongrid():
    return StubTronGrid()


@pytest.fixture
def tronscan():
    return StubTronScan()


@pytest.fixture
def tool_context(trongrid, tronscan):
    return ToolContext(trongrid=trongrid, tronscan=tronscan, config=TronConfig(), clock=lambda: FIXED_TS)


@pytest.fixture
def dispatcher(tool_context, fixed_envelopes):
    return Dispatcher(context=tool_context, envelopes=fixed_envelopes)
