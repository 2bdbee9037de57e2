import logging
import threading
import time
from contextlib import contextmanager

from blockchain import Blockchain
from config import configure_logging
from data_models import (
    CANDIDATE_REGISTERED,
    CANDIDATE_RESET,
    CREDENTIAL_ISSUED,
    CREDENTIAL_REVOKED,
    ELECTION_CONFIGURED,
    MAX_CANDIDATES,
    VOTE_CAST,
    ElectionWindow,
)
from database import issue_from_roll, load_voter_roll
from election import ElectionClock
from errors import (
    AlreadyVoted,
    ElectionClosed,
    InvalidCandidate,
    InvalidSignature,
    LedgerError,
    UnauthorizedVoter,
    VotingError,
)
from registry import CandidateRegistry, CredentialRegistry
from wallet import (
    credential_bytes,
    decode_signature,
    derive_credential_id,
    is_credential_id,
    message_digest,
    raw_message_digest,
    recover_signer,
)

logger = logging.getLogger(__name__)


class VotingEngine:
    """
    Credential-gated ballot box.

    Owns the credential and candidate registries, the election clock, the
    per-credential vote records and the tally. Every mutation runs under one
    lock, validates fully before touching state, and only stands once its
    ledger block is written, so a rejected or unpersisted call never leaves
    partial effects. Reads take the same lock and see the state between
    mutations.

    A ledger that already holds events is replayed on construction, so an
    engine reopened over a persisted ledger resumes where the last one stopped.
    """

    def __init__(self, ledger=None, max_candidates=MAX_CANDIDATES, default_duration_hours=24):
        self.ledger = ledger if ledger is not None else Blockchain()
        self.credentials = CredentialRegistry(sink=self.ledger)
        self.candidate_registry = CandidateRegistry(sink=self.ledger, max_candidates=max_candidates)
        self.clock = ElectionClock()
        self._voted = set()
        self._tally = {}
        self.default_duration_hours = default_duration_hours
        self._lock = threading.RLock()
        self._replay()

    @classmethod
    def from_config(cls, config):
        configure_logging(config.get("log_level", "INFO"))
        engine = cls(
            ledger=Blockchain(config.get("ledger_path")),
            max_candidates=config.get("max_candidates", MAX_CANDIDATES),
            default_duration_hours=config.get("default_duration_hours", 24),
        )
        roll_path = config.get("voter_roll_path")
        if roll_path:
            roll = load_voter_roll(roll_path)
            if not roll.empty:
                issue_from_roll(engine, roll)
                logger.info("voter roll %s loaded with %d rows", roll_path, len(roll))
        return engine

    def _replay(self):
        holders = {}
        candidates = CandidateRegistry(max_candidates=0)
        window = ElectionWindow()
        for event in self.ledger.events():
            kind, payload = event.get("event"), event.get("payload", {})
            if kind == CREDENTIAL_ISSUED:
                holders[payload["credential_id"]] = payload["holder"]
            elif kind == CREDENTIAL_REVOKED:
                holders.pop(payload["credential_id"], None)
            elif kind == CANDIDATE_REGISTERED:
                candidates.register(payload["candidate_id"])
            elif kind == CANDIDATE_RESET:
                candidates.remove(payload["candidate_id"])
            elif kind == ELECTION_CONFIGURED:
                window = ElectionWindow(payload["start_time"], payload["end_time"])
            elif kind == VOTE_CAST:
                if payload["credential_id"] in self._voted:
                    raise LedgerError(f"ledger records two votes for credential {payload['credential_id']}")
                self._voted.add(payload["credential_id"])
                self._tally[payload["candidate_id"]] = self._tally.get(payload["candidate_id"], 0) + 1
            else:
                raise LedgerError(f"unknown ledger event {kind!r}")
        self.credentials.restore(holders)
        self.candidate_registry.restore(candidates.candidates())
        self.clock.restore(window)
        if len(self.ledger.chain) > 1:
            logger.info("replayed %d ledger blocks, %d votes", len(self.ledger.chain) - 1, len(self._voted))

    @contextmanager
    def _sealed(self, restore):
        """Seal the events a mutation recorded; undo the mutation if the block cannot be written."""
        yield
        try:
            self.ledger.mine_block()
        except Exception:
            self.ledger.discard_pending()
            restore()
            raise

    # --- OPERATOR ACTIONS ---
    def configure_election(self, duration_hours=None, now=None):
        if duration_hours is None:
            duration_hours = self.default_duration_hours
        now = time.time() if now is None else now
        with self._lock:
            previous = self.clock.window
            with self._sealed(lambda: self.clock.restore(previous)):
                window = self.clock.configure(duration_hours, now)
                self.ledger.record(ELECTION_CONFIGURED, {
                    "start_time": window.start_time,
                    "end_time": window.end_time,
                })
            return window

    def issue_credential(self, holder, credential_id):
        with self._lock:
            previous = self.credentials.snapshot()
            with self._sealed(lambda: self.credentials.restore(previous)):
                self.credentials.issue(holder, credential_id)

    def revoke_credential(self, credential_id):
        with self._lock:
            previous = self.credentials.snapshot()
            with self._sealed(lambda: self.credentials.restore(previous)):
                self.credentials.revoke(credential_id)

    def register_candidate(self, candidate_id):
        with self._lock:
            previous = self.candidate_registry.candidates()
            with self._sealed(lambda: self.candidate_registry.restore(previous)):
                self.candidate_registry.register(candidate_id)

    def remove_candidate(self, candidate_id):
        with self._lock:
            previous = self.candidate_registry.candidates()
            with self._sealed(lambda: self.candidate_registry.restore(previous)):
                self.candidate_registry.remove(candidate_id)

    # --- VOTING ---
    @staticmethod
    def derive_credential_id(voter_id):
        return derive_credential_id(voter_id)

    @staticmethod
    def compute_message_digest(credential_id, candidate_id):
        return message_digest(credential_id, candidate_id)

    def cast_vote(self, credential_id, candidate_id, signature, now=None):
        now = time.time() if now is None else now
        with self._lock:
            try:
                self._authorize(credential_id, candidate_id, signature, now)
            except VotingError as exc:
                logger.info("vote rejected [%s] credential=%s candidate=%r", exc.code, credential_id, candidate_id)
                raise
            # Nothing is counted until the vote's block is on disk
            with self._sealed(lambda: None):
                self.ledger.record(VOTE_CAST, {"credential_id": credential_id, "candidate_id": candidate_id})
            self._voted.add(credential_id)
            self._tally[candidate_id] = self._tally.get(candidate_id, 0) + 1
            logger.info("vote recorded credential=%s candidate=%r", credential_id, candidate_id)

    def _authorize(self, credential_id, candidate_id, signature, now):
        # Check order decides which error the caller sees
        if not self.clock.is_open(now):
            raise ElectionClosed("election is not open")
        if credential_id in self._voted:
            raise AlreadyVoted(f"credential {credential_id} has already voted")
        if not self.candidate_registry.is_registered(candidate_id):
            raise InvalidCandidate(f"candidate {candidate_id!r} is not registered")

        decode_signature(signature)
        well_formed = is_credential_id(credential_id)
        # Malformed ids are still run through recovery so a bad signature is reported first
        raw_id = credential_bytes(credential_id) if well_formed else str(credential_id).encode("utf-8")
        signer = recover_signer(raw_message_digest(raw_id, candidate_id), signature)
        if signer is None:
            raise InvalidSignature("could not recover signer")

        holder = self.credentials.holder_of(credential_id) if well_formed else None
        if holder is None or signer != holder:
            raise UnauthorizedVoter(f"signer is not the holder of credential {credential_id}")

    # --- READS ---
    @property
    def start_time(self):
        with self._lock:
            return self.clock.start_time

    @property
    def end_time(self):
        with self._lock:
            return self.clock.end_time

    def is_open(self, now=None):
        now = time.time() if now is None else now
        with self._lock:
            return self.clock.is_open(now)

    def candidates(self):
        with self._lock:
            return self.candidate_registry.candidates()

    def is_registered(self, candidate_id):
        with self._lock:
            return self.candidate_registry.is_registered(candidate_id)

    def holder_of(self, credential_id):
        with self._lock:
            return self.credentials.holder_of(credential_id)

    def has_voted(self, credential_id):
        with self._lock:
            return credential_id in self._voted

    def tally(self, candidate_id):
        with self._lock:
            return self._tally.get(candidate_id, 0)

    def results(self):
        with self._lock:
            return dict(self._tally)

    def total_votes(self):
        with self._lock:
            return sum(self._tally.values())
