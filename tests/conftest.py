import pytest

from voting_engine import VotingEngine
from wallet import generate_key_pair, message_digest, sign_vote

START = 1_700_000_000.0
INSIDE = START + 1800.0


class Voter:
    def __init__(self, voter_id):
        self.voter_id = voter_id
        self.private_key, self.public_key = generate_key_pair()
        self.credential_id = VotingEngine.derive_credential_id(voter_id)

    def sign(self, candidate_id, credential_id=None):
        digest = message_digest(credential_id or self.credential_id, candidate_id)
        return sign_vote(self.private_key, digest)


@pytest.fixture
def voter_a():
    return Voter("voter-a@example.org")


@pytest.fixture
def voter_b():
    return Voter("voter-b@example.org")


@pytest.fixture
def engine():
    return VotingEngine()


@pytest.fixture
def open_engine(engine, voter_a):
    """Engine with alice/bob registered, voter A issued, and a 1-hour window from START."""
    engine.issue_credential(voter_a.public_key, voter_a.credential_id)
    engine.register_candidate("alice")
    engine.register_candidate("bob")
    engine.configure_election(1, now=START)
    return engine
