import logging

from data_models import (
    CANDIDATE_REGISTERED,
    CANDIDATE_RESET,
    CREDENTIAL_ISSUED,
    CREDENTIAL_REVOKED,
    MAX_CANDIDATES,
)
from errors import AlreadyIssued, AlreadyRegistered, CandidateLimitReached, NotIssued
from wallet import derive_credential_id, is_credential_id, normalize_identity

logger = logging.getLogger(__name__)


class CredentialRegistry:
    """
    Who currently holds each voting credential.

    Only issue/revoke/holder_of are exposed; credentials cannot be transferred.
    Operator checks happen before these methods are reached.
    """

    def __init__(self, sink=None):
        self._holders = {}
        self.sink = sink

    derive_credential_id = staticmethod(derive_credential_id)

    def issue(self, holder, credential_id):
        if not is_credential_id(credential_id):
            raise ValueError(f"malformed credential id: {credential_id!r}")
        holder = normalize_identity(holder)
        if credential_id in self._holders:
            raise AlreadyIssued(f"credential {credential_id} is already issued")
        self._holders[credential_id] = holder
        if self.sink is not None:
            self.sink.record(CREDENTIAL_ISSUED, {"credential_id": credential_id, "holder": holder})
        logger.info("issued credential %s", credential_id)

    def revoke(self, credential_id):
        if credential_id not in self._holders:
            raise NotIssued(f"credential {credential_id} is not issued")
        del self._holders[credential_id]
        if self.sink is not None:
            self.sink.record(CREDENTIAL_REVOKED, {"credential_id": credential_id})
        logger.info("revoked credential %s", credential_id)

    def holder_of(self, credential_id):
        return self._holders.get(credential_id)

    def snapshot(self):
        return dict(self._holders)

    def restore(self, holders):
        self._holders = dict(holders)

    def issued_count(self):
        return len(self._holders)

    def __contains__(self, credential_id):
        return credential_id in self._holders


class CandidateRegistry:
    """
    Unordered, duplicate-free set of eligible candidates.

    Enumeration order is not stable across removals. Membership is an exact
    string match.
    """

    def __init__(self, sink=None, max_candidates=MAX_CANDIDATES):
        self._candidates = []
        self.sink = sink
        self.max_candidates = max_candidates

    def register(self, candidate_id):
        if not isinstance(candidate_id, str):
            raise ValueError("candidate id must be a string")
        if self.is_registered(candidate_id):
            raise AlreadyRegistered(f"candidate {candidate_id!r} is already registered")
        if self.max_candidates and len(self._candidates) >= self.max_candidates:
            raise CandidateLimitReached(f"at most {self.max_candidates} candidates may be registered")
        self._candidates.append(candidate_id)
        self._emit(CANDIDATE_REGISTERED, candidate_id)
        logger.info("registered candidate %r", candidate_id)

    def remove(self, candidate_id):
        # Removing an unknown candidate is a no-op but the reset event is still emitted
        for i, existing in enumerate(self._candidates):
            if existing == candidate_id:
                self._candidates[i] = self._candidates[-1]
                self._candidates.pop()
                logger.info("removed candidate %r", candidate_id)
                break
        else:
            logger.warning("reset of unregistered candidate %r", candidate_id)
        self._emit(CANDIDATE_RESET, candidate_id)

    def is_registered(self, candidate_id):
        for existing in self._candidates:
            if existing == candidate_id:
                return True
        return False

    def candidates(self):
        return list(self._candidates)

    def restore(self, candidates):
        self._candidates = list(candidates)

    def __len__(self):
        return len(self._candidates)

    def _emit(self, event_type, candidate_id):
        if self.sink is not None:
            self.sink.record(event_type, {"candidate_id": candidate_id})
