import pytest

from conftest import ADDRESS, FAST, SCRIPT, funding_tx, spend
from regforge.errors import ErrorKind, InvalidOutpointIndex, ValidHashNotFound
from regforge.forge import (DEFAULT_FORGE_CONFIG, ForgeConfig, assemble_block, coinbase_script,
                            generate_new_block, solve_block)
from regforge.params import COIN, REGTEST
from regforge.script import OP_0
from regforge.wire import hash_to_int, target_from_nbits


def test_coinbase_script_layout():
    assert coinbase_script(1, 0, b"/P2SH/") == b"\x51\x00\x06/P2SH/"
    assert coinbase_script(17, 0, b"/P2SH/") == b"\x01\x11\x00\x06/P2SH/"
    assert coinbase_script(500, 0, b"/P2SH/")[:3] == b"\x02\xf4\x01"
    # 128 needs a sign byte
    assert coinbase_script(128, 0, b"")[:3] == b"\x02\x80\x00"


class TestEmptyBlock:
    def test_only_coinbase_and_valid_pow(self, index):
        parent = index.tip()
        block = generate_new_block("regtest", index, parent, ADDRESS, block_time=parent.header.timestamp + 1)

        assert len(block.txs) == 1
        coinbase = block.txs[0]
        assert coinbase.is_coinbase()
        assert coinbase.vin[0].sequence == 0xffffffff
        assert coinbase.vout[0].value == REGTEST.block_subsidy(parent.height + 1)
        assert coinbase.vout[0].script_pubkey == SCRIPT

        hv = hash_to_int(block.hash())
        assert hv <= target_from_nbits(block.header.bits)
        assert hv <= DEFAULT_FORGE_CONFIG.max_hash

    def test_header_fields(self, index):
        parent = index.tip()
        block = generate_new_block("regtest", index, parent, ADDRESS, block_time=1_700_000_000, config=FAST)
        assert block.height == 1
        assert block.header.prev_hash == parent.hash()
        assert block.header.bits == parent.header.bits
        assert block.header.timestamp == 1_700_000_000
        assert block.header.merkle_root == block.txs[0].txid()
        # the block connects in the local index
        index.process_block(block)
        assert index.height == 1

    def test_default_timestamp_is_now(self, index, monkeypatch):
        monkeypatch.setattr("regforge.forge.time.time", lambda: 1_800_000_000.7)
        block = generate_new_block("regtest", index, index.tip(), ADDRESS, config=FAST)
        assert block.header.timestamp == 1_800_000_000

    def test_parent_without_height_rejected(self, index):
        parent = index.tip()
        parent.height = -1
        with pytest.raises(ValueError):
            assemble_block("regtest", index, parent, ADDRESS)


class TestBlockWithTransactions:
    def test_fees_go_to_coinbase(self, index, genesis_coinbase):
        a = spend(genesis_coinbase, 0, 49 * COIN)
        b = spend(a, 0, 48 * COIN)
        orphan = spend(funding_tx(1_000), 0, 500)
        block = generate_new_block("regtest", index, index.tip(), ADDRESS, [a, orphan, b], 1_700_000_000,
                                   config=FAST)

        assert block.txs[1:] == [a, b]
        assert block.txs[0].vout[0].value == 50 * COIN + 2 * COIN
        assert block.header.merkle_root == block.calc_merkle_root()
        index.process_block(block)

    def test_assemble_reports_dropped(self, index):
        orphan = spend(funding_tx(1_000), 0, 500)
        block, fees = assemble_block("regtest", index, index.tip(), ADDRESS, [orphan], 1_700_000_000)
        assert len(block.txs) == 1
        assert [r.tx for r in fees.rejected] == [orphan]
        assert block.header.nonce == 0

    def test_out_of_range_propagates(self, index, genesis_coinbase):
        bad = spend(genesis_coinbase, 5, 1)
        with pytest.raises(InvalidOutpointIndex):
            generate_new_block("regtest", index, index.tip(), ADDRESS, [bad], config=FAST)


class TestSolveBlock:
    def test_exhaustion(self, index):
        parent = index.tip()
        parent.header.bits = 0x03000001  # target 1
        block, _ = assemble_block("regtest", index, parent, ADDRESS, block_time=1_700_000_000)
        with pytest.raises(ValidHashNotFound) as excinfo:
            solve_block(block, ForgeConfig(max_nonce=64))
        assert excinfo.value.kind is ErrorKind.VALID_HASH_NOT_FOUND

    def test_ceiling_applies_below_target(self, index):
        block, _ = assemble_block("regtest", index, index.tip(), ADDRESS, block_time=1_700_000_000)
        strict = ForgeConfig(max_hash=(1 << 248) - 1)
        solve_block(block, strict)
        assert hash_to_int(block.hash()) <= strict.max_hash

    def test_coinbase_script_prefix(self, index):
        block = generate_new_block("regtest", index, index.tip(), ADDRESS, config=FAST)
        script = block.txs[0].vin[0].script_sig
        assert script[0] == 0x51
        assert script[1] == OP_0
        assert script.endswith(b"/P2SH/")
