import pandas as pd
import pytest

from conftest import INSIDE, Voter
from database import (
    ROLL_COLUMNS,
    issue_from_roll,
    load_voter_roll,
    results_frame,
    save_voter_roll,
)


@pytest.fixture
def roll_voters():
    return [Voter("V-100"), Voter("V-200"), Voter("V-300")]


def test_missing_roll_is_empty(tmp_path):
    df = load_voter_roll(str(tmp_path / "voters.csv"))
    assert list(df.columns) == ROLL_COLUMNS
    assert df.empty


def test_roll_round_trips_as_strings(tmp_path, roll_voters):
    path = str(tmp_path / "voters.csv")
    df = pd.DataFrame([{'voter_id': v.voter_id, 'public_key': v.public_key} for v in roll_voters])
    save_voter_roll(df, path)
    loaded = load_voter_roll(path)
    assert loaded['public_key'].tolist() == [v.public_key for v in roll_voters]


def test_roll_missing_columns_rejected(tmp_path):
    path = tmp_path / "voters.csv"
    path.write_text("name,dob\nA,2000-01-01\n")
    with pytest.raises(ValueError, match="public_key"):
        load_voter_roll(str(path))


def test_issue_from_roll(engine, roll_voters):
    df = pd.DataFrame([{'voter_id': v.voter_id, 'public_key': v.public_key} for v in roll_voters])
    issued = issue_from_roll(engine, df)
    assert issued['credential_id'].tolist() == [v.credential_id for v in roll_voters]
    for v in roll_voters:
        assert engine.holder_of(v.credential_id) == v.public_key
    assert 'credential_id' not in df.columns


def test_issue_from_roll_skips_already_issued(engine, roll_voters):
    first = roll_voters[0]
    engine.issue_credential(first.public_key, first.credential_id)
    df = pd.DataFrame([{'voter_id': v.voter_id, 'public_key': v.public_key} for v in roll_voters])
    issue_from_roll(engine, df)
    assert all(engine.holder_of(v.credential_id) == v.public_key for v in roll_voters)


def test_results_frame_includes_removed_candidates(open_engine, voter_a, roll_voters):
    for v in roll_voters:
        open_engine.issue_credential(v.public_key, v.credential_id)
    open_engine.cast_vote(voter_a.credential_id, "alice", voter_a.sign("alice"), now=INSIDE)
    for v in roll_voters[:2]:
        open_engine.cast_vote(v.credential_id, "bob", v.sign("bob"), now=INSIDE)
    open_engine.remove_candidate("alice")
    open_engine.register_candidate("carol")

    results_df = results_frame(open_engine)
    assert results_df['Candidate'].tolist() == ["bob", "alice", "carol"]
    assert results_df['Votes'].tolist() == [2, 1, 0]


def test_results_frame_empty(engine):
    results_df = results_frame(engine)
    assert list(results_df.columns) == ['Candidate', 'Votes']
    assert results_df.empty
