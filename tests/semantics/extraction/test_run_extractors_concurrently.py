"""
Semantic test: extractors are independent.

Invariant:
Running the extractors on a thread pool returns the same batches, in the same
extractor order, as running them inline.
"""

from __future__ import annotations

from polymarket_orderbook.core.extract.extractors import build_extractors, run_extractors
from polymarket_orderbook.pipeline.config import default_contracts


def test_thread_pool_matches_inline(chain) -> None:
    block = chain.block(
        40,
        chain.tx(
            chain.fill_log(ordinal=0),
            chain.matched_log(ordinal=1),
            chain.fill_log(ordinal=2, address=chain.neg_risk),
            chain.matched_log(ordinal=3, address=chain.neg_risk),
        ),
    )
    extractors = build_extractors(default_contracts())

    inline = run_extractors(block, extractors)
    pooled = run_extractors(block, extractors, max_workers=4)

    assert [e.name for e in extractors] == [
        "ctf_order_filled",
        "ctf_orders_matched",
        "neg_risk_order_filled",
        "neg_risk_orders_matched",
    ]
    assert pooled == inline
    assert [len(b.events) for b in inline] == [1, 1, 1, 1]
