"""
Semantic test: merged batches follow block log order.

Invariant:
For any e1, e2 in a merged batch, e1.ordinal < e2.ordinal implies e1 comes
first. The result does not depend on which batch is passed first.
"""

from __future__ import annotations

from polymarket_orderbook.core.extract.extractors import OrderFilledExtractor
from polymarket_orderbook.core.extract.merger import merge_all, merge_batches


def test_cross_contract_merge_is_ordered_and_symmetric(chain) -> None:
    block = chain.block(
        50,
        chain.tx(
            chain.fill_log(ordinal=0, address=chain.neg_risk),
            chain.fill_log(ordinal=1),
        ),
        chain.tx(
            chain.fill_log(ordinal=2, address=chain.neg_risk),
            chain.fill_log(ordinal=3),
        ),
    )
    ctf = OrderFilledExtractor(exchange="ctf", contract_address=chain.ctf).extract(block)
    neg = OrderFilledExtractor(exchange="neg_risk", contract_address=chain.neg_risk).extract(block)

    forward = merge_batches(ctf, neg)
    backward = merge_batches(neg, ctf)

    assert [e.ordinal for e in forward.events] == [0, 1, 2, 3]
    assert forward.events == backward.events
    assert [e.exchange for e in forward.events] == ["neg_risk", "ctf", "neg_risk", "ctf"]


def test_merge_does_not_mutate_inputs(chain) -> None:
    block = chain.block(
        51,
        chain.tx(chain.fill_log(ordinal=1, address=chain.neg_risk), chain.fill_log(ordinal=4)),
    )
    ctf = OrderFilledExtractor(exchange="ctf", contract_address=chain.ctf).extract(block)
    neg = OrderFilledExtractor(exchange="neg_risk", contract_address=chain.neg_risk).extract(block)

    merge_all([ctf, neg])

    assert [e.ordinal for e in ctf.events] == [4]
    assert [e.ordinal for e in neg.events] == [1]
