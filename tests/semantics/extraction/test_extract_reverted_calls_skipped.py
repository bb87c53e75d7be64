"""
Semantic test: logs of reverted calls are not extracted.

Invariant:
Only logs of calls that did not revert contribute events.
"""

from __future__ import annotations

from polymarket_orderbook.core.extract.extractors import OrderFilledExtractor


def test_reverted_call_logs_are_ignored(chain) -> None:
    block = chain.block(
        20,
        chain.tx(chain.fill_log(ordinal=0), reverted=True),
        chain.tx(chain.fill_log(ordinal=1)),
    )

    batch = OrderFilledExtractor(exchange="ctf", contract_address=chain.ctf).extract(block)

    assert [e.ordinal for e in batch.events] == [1]
