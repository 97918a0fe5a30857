"""Tests for session-scoped transaction encoding."""

import pytest
import pandas as pd
import pyarrow as pa

from seqrules.core.ingestion import load_events
from seqrules.datasets import generate_large_clickstream
from seqrules.errors import ConfigurationError, SequenceInvariantError
from seqrules.preprocessing.encoder import (
    SequenceEncoder, EncodedTransactionSet, encode, sanitize_symbol, verify_encoding,
)
from seqrules.preprocessing.normalizer import normalize


class TestSanitizeSymbol:

    def test_whitespace_runs_become_one_underscore(self):
        assert sanitize_symbol("click A") == "click_A"
        assert sanitize_symbol("add  to\tcart\n") == "add_to_cart_"

    def test_idempotent(self):
        for label in ["click A", "a \t b", "already_clean", " lead"]:
            once = sanitize_symbol(label)
            assert sanitize_symbol(once) == once

    def test_non_string_labels(self):
        assert sanitize_symbol(42) == "42"


class TestEncode:

    def test_scenario_transactions(self, scenario_records):
        normalized = normalize(scenario_records, "Session", "Timestamp")
        tx = encode(normalized, "Session", "Action")
        assert isinstance(tx, EncodedTransactionSet)
        assert tx.as_dict() == {
            tx.sequence_id_of("S1"): [(1, "click_A"), (2, "click_B")],
            tx.sequence_id_of("S2"): [(1, "scroll")],
        }

    def test_transaction_columns(self, clickstream_transactions):
        assert clickstream_transactions.transactions.column_names == ["sequence_id", "event_id", "item", "item_code"]
        assert clickstream_transactions.sessions.column_names == ["session_key", "sequence_id"]

    def test_event_ids_contiguous_per_sequence(self):
        df = generate_large_clickstream(n_sessions=40, seed=7)
        tx = encode(df, "session_id", "action", timestamp_field="timestamp")
        for seq_id, events in tx.as_dict().items():
            assert [e for e, _ in events] == list(range(1, len(events) + 1))
        assert len(tx) == len(df)

    def test_sequence_ids_are_a_bijection(self):
        df = generate_large_clickstream(n_sessions=40, seed=7)
        tx = encode(df, "session_id", "action", timestamp_field="timestamp")
        sessions = tx.sessions.to_pylist()
        keys = [s["session_key"] for s in sessions]
        ids = [s["sequence_id"] for s in sessions]
        assert len(set(keys)) == len(keys) == df["session_id"].nunique()
        assert sorted(ids) == list(range(1, len(ids) + 1))
        assert tx.n_sequences == len(ids)

    def test_sequence_ids_follow_key_order(self):
        df = pd.DataFrame({
            "sid": [10, 9, 100, 9],
            "ts": ["2024-01-01 10:00:00"] * 4,
            "action": ["a", "b", "c", "d"],
        })
        tx = encode(df, "sid", "action", timestamp_field="ts")
        assert [tx.sequence_id_of(k) for k in (9, 10, 100)] == [1, 2, 3]

    def test_unknown_key_raises(self, clickstream_transactions):
        with pytest.raises(KeyError):
            clickstream_transactions.sequence_id_of("nobody")

    def test_resorts_unordered_input(self, shuffled_records):
        tx = encode(shuffled_records, "User Name", "Action Label", timestamp_field="Event DateTime")
        assert tx.as_dict()[tx.sequence_id_of("A")] == [(1, "search"), (2, "view_item"), (3, "checkout")]

    def test_sql_sanitisation_matches_python(self):
        labels = ["add to cart", "add  to   cart", "tab\tlabel", "plain"]
        df = pd.DataFrame({
            "sid": ["S"] * 4,
            "ts": [f"2024-01-01 10:00:0{i}" for i in range(4)],
            "action": labels,
        })
        tx = encode(df, "sid", "action", timestamp_field="ts")
        assert tx.transactions.column("item").to_pylist() == [sanitize_symbol(l) for l in labels]

    def test_whitespace_variants_share_a_symbol(self):
        df = pd.DataFrame({
            "sid": ["S", "T"],
            "ts": ["2024-01-01 10:00:00", "2024-01-01 10:00:00"],
            "action": ["add to cart", "add  to cart"],
        })
        tx = encode(df, "sid", "action", timestamp_field="ts")
        assert tx.symbols == {"add_to_cart": 1}

    def test_symbol_codes_are_lexicographic(self, scenario_records):
        tx = encode(normalize(scenario_records, "Session", "Timestamp"), "Session", "Action")
        assert tx.symbols == {"click_A": 1, "click_B": 2, "scroll": 3}
        codes = {r["item"]: r["item_code"] for r in tx.transactions.to_pylist()}
        assert codes == tx.symbols

    def test_null_actions_dropped_without_gaps(self):
        df = pd.DataFrame({
            "sid": ["S", "S", "S"],
            "ts": ["2024-01-01 10:00:00", "2024-01-01 10:00:01", "2024-01-01 10:00:02"],
            "action": ["a", None, "b"],
        })
        tx = encode(df, "sid", "action", timestamp_field="ts")
        assert tx.as_dict() == {1: [(1, "a"), (2, "b")]}

    def test_to_sequences(self, clickstream_transactions):
        seqs = clickstream_transactions.to_sequences()
        assert seqs[0] == ["search", "view_product", "add_to_cart", "checkout"]
        assert seqs[-1] == ["search", "help_page"]

    def test_missing_action_field(self, scenario_records):
        normalized = normalize(scenario_records, "Session", "Timestamp")
        with pytest.raises(ConfigurationError, match="Event"):
            encode(normalized, "Session", "Event")

    def test_missing_timestamp_field(self, scenario_records):
        with pytest.raises(ConfigurationError, match="event_time"):
            encode(scenario_records, "Session", "Action")


class TestSequenceEncoder:

    def test_encodes_normalized_table(self, loaded_conn):
        from seqrules.preprocessing.normalizer import TemporalNormalizer
        TemporalNormalizer(loaded_conn, "Username", "DateTime").fit()
        tx = SequenceEncoder(loaded_conn, "Username", "Action").fit()
        assert tx.n_sequences == 5
        assert len(tx) == 17

    def test_table_without_row_positions(self, conn):
        conn.execute("""
            CREATE TABLE log AS SELECT * FROM (VALUES
                ('k', TIMESTAMP '2024-01-01 10:00:01', 'b'),
                ('k', TIMESTAMP '2024-01-01 10:00:00', 'a')
            ) t(sid, ts, action)
        """)
        tx = SequenceEncoder(conn, "sid", "action", timestamp_col="ts", table_name="log").fit()
        assert tx.as_dict() == {1: [(1, "a"), (2, "b")]}

    def test_scratch_tables_dropped(self, loaded_conn):
        SequenceEncoder(loaded_conn, "Username", "Action", timestamp_col="DateTime", table_name="events").fit()
        assert loaded_conn.table_exists("_encoded") is False
        assert loaded_conn.table_exists("events") is True

    def test_scratch_row_copy_dropped(self, conn):
        conn.execute("CREATE TABLE log AS SELECT 'k' AS sid, TIMESTAMP '2024-01-01 10:00:00' AS ts, 'a' AS action")
        SequenceEncoder(conn, "sid", "action", timestamp_col="ts", table_name="log").fit()
        assert conn.table_exists("_log_rows") is False
        assert conn.table_exists("log") is True

    def test_symbols_are_read_only(self, clickstream_transactions):
        with pytest.raises(TypeError):
            clickstream_transactions.symbols["new_item"] = 99


class TestVerifyEncoding:

    def _table(self, conn, rows):
        conn.register("_rows", pa.Table.from_pylist(
            [dict(zip(["session_key", "sequence_id", "event_id", "item"], r)) for r in rows]
        ))
        conn.execute("CREATE OR REPLACE TABLE enc AS SELECT * FROM _rows")
        return "enc"

    def test_valid_encoding_passes(self, conn):
        verify_encoding(conn, self._table(conn, [("k1", 1, 1, "a"), ("k1", 1, 2, "b"), ("k2", 2, 1, "a")]))

    def test_event_gap_is_fatal(self, conn):
        with pytest.raises(SequenceInvariantError, match="1..n"):
            verify_encoding(conn, self._table(conn, [("k1", 1, 1, "a"), ("k1", 1, 3, "b")]))

    def test_sparse_ids_are_fatal(self, conn):
        with pytest.raises(SequenceInvariantError, match="dense"):
            verify_encoding(conn, self._table(conn, [("k1", 1, 1, "a"), ("k2", 3, 1, "b")]))

    def test_shared_id_is_fatal(self, conn):
        with pytest.raises(SequenceInvariantError, match="one-to-one"):
            verify_encoding(conn, self._table(conn, [("k1", 1, 1, "a"), ("k2", 1, 2, "b")]))

    def test_invariant_error_is_runtime_error(self):
        assert issubclass(SequenceInvariantError, RuntimeError)
