
# ---------------------------------------------------------------------------
# Tests configuration
# ---------------------------------------------------------------------------

import pytest
import pandas as pd

from seqrules.core.connection import DuckDBConnection


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def conn():
    """In-memory DuckDB connection for each test."""
    db = DuckDBConnection()  # :memory:
    yield db
    db.close()


@pytest.fixture
def scenario_records():
    """Two sessions, three actions; S1 events two seconds apart."""
    data = [
        ("S1", "2024-01-01 10:00:00", "click A"),
        ("S1", "2024-01-01 10:00:02", "click B"),
        ("S2", "2024-01-01 09:00:00", "scroll"),
    ]
    return pd.DataFrame(data, columns=["Session", "Timestamp", "Action"])


@pytest.fixture
def shuffled_records():
    """Same shape as a raw export: sessions interleaved, events out of order."""
    data = [
        ("B", "2024-01-01 08:00:03", "view item"),
        ("A", "2024-01-01 10:00:05.500", "checkout"),
        ("B", "2024-01-01 08:00:00", "search"),
        ("A", "2024-01-01 10:00:00", "search"),
        ("A", "2024-01-01 10:00:01.250", "view item"),
        ("C", "2024-01-01 07:00:00", "search"),
    ]
    return pd.DataFrame(data, columns=["User Name", "Event DateTime", "Action Label"])


@pytest.fixture
def clickstream_df():
    from seqrules.datasets import generate_clickstream_data
    return generate_clickstream_data()


@pytest.fixture
def loaded_conn(conn, clickstream_df):
    """Connection with the clickstream log already loaded as ``events``."""
    from seqrules.core.ingestion import load_events
    load_events(conn, clickstream_df)
    return conn


@pytest.fixture
def clickstream_transactions(clickstream_df):
    from seqrules.preprocessing import normalize, encode
    normalized = normalize(clickstream_df, "Username", "DateTime")
    return encode(normalized, "Username", "Action")


@pytest.fixture
def seqrules_instance(clickstream_df):
    """SeqRules instance with the clickstream log loaded."""
    from seqrules.api import SeqRules
    db = SeqRules()
    db.load(clickstream_df)
    yield db
    db.close()
