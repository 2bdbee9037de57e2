from dataclasses import dataclass

# --- Configuration and Constants ---
# 0 disables the candidate cap
MAX_CANDIDATES = 0
SECONDS_PER_HOUR = 3600
CREDENTIAL_ID_BYTES = 32
SIGNATURE_LENGTH = 65

# Event names written to the ledger
CANDIDATE_REGISTERED = "CandidateRegistered"
CANDIDATE_RESET = "CandidateReset"
ELECTION_CONFIGURED = "ElectionConfigured"
CREDENTIAL_ISSUED = "CredentialIssued"
CREDENTIAL_REVOKED = "CredentialRevoked"
VOTE_CAST = "VoteCast"


@dataclass(frozen=True)
class ElectionWindow:
    """Open interval (start_time, end_time) in epoch seconds."""
    start_time: float = 0.0
    end_time: float = 0.0

    @property
    def configured(self):
        return self.end_time > self.start_time

    def contains(self, now):
        return self.start_time < now < self.end_time


@dataclass(frozen=True)
class RecoverableSignature:
    """Fixed-width r(32) || s(32) || v(1) signature, decoded."""
    r: int
    s: int
    v: int

    @property
    def recovery_id(self):
        return self.v - 27 if self.v >= 27 else self.v
