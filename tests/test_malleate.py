import pytest

from conftest import funding_tx, spend
from regforge.malleate import malleate_batch, malleate_tx_add_op0, split_independent
from regforge.wire import Tx, TxOut


class TestMalleateAddOp0:
    def test_only_first_script_changes(self):
        parent = funding_tx(5_000, 6_000)
        tx = spend(parent, 0, 4_000)
        tx.vin.append(spend(parent, 1).vin[0])

        mal = malleate_tx_add_op0(tx)

        assert mal.txid() != tx.txid()
        assert mal.vin[0].script_sig == b"\x00" + tx.vin[0].script_sig
        assert mal.vin[0].prevout == tx.vin[0].prevout
        assert mal.vin[1] == tx.vin[1]
        assert mal.vout == tx.vout
        assert (mal.version, mal.locktime) == (tx.version, tx.locktime)

    def test_input_transaction_untouched(self):
        tx = spend(funding_tx(5_000), 0, 4_000)
        before = tx.serialize()
        malleate_tx_add_op0(tx)
        assert tx.serialize() == before

    def test_no_inputs(self):
        with pytest.raises(ValueError):
            malleate_tx_add_op0(Tx(vout=[TxOut(1, b"\x51")]))


def test_split_independent():
    a = spend(funding_tx(5_000), 0, 4_000)
    b = spend(a, 0, 3_000)
    c = spend(funding_tx(7_000), 0, 6_000)
    independent, dependent = split_independent([a, b, c])
    assert independent == [a, c]
    assert dependent == [b]


def test_malleate_batch_skips_dependents(caplog):
    a = spend(funding_tx(5_000), 0, 4_000)
    b = spend(a, 0, 3_000)
    with caplog.at_level("INFO", logger="regforge.malleate"):
        out = malleate_batch([b, a])
    assert len(out) == 1
    assert out[0].vin[0].script_sig == b"\x00" + a.vin[0].script_sig
    assert any(b.txid_hex() in r.getMessage() for r in caplog.records)
