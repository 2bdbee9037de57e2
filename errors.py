class VotingError(Exception):
    """Base class for every rejection the engine reports."""
    code = "voting_error"

    def __init__(self, message=None):
        super().__init__(message or self.code)


class ElectionClosed(VotingError):
    code = "election_closed"


class AlreadyVoted(VotingError):
    code = "already_voted"


class InvalidCandidate(VotingError):
    code = "invalid_candidate"


class InvalidSignatureLength(VotingError):
    code = "invalid_signature_length"


class InvalidSignature(VotingError):
    code = "invalid_signature"


class UnauthorizedVoter(VotingError):
    code = "unauthorized_voter"


class AlreadyRegistered(VotingError):
    code = "already_registered"


class CandidateLimitReached(VotingError):
    code = "candidate_limit_reached"


class AlreadyIssued(VotingError):
    code = "already_issued"


class NotIssued(VotingError):
    code = "not_issued"


class LedgerError(Exception):
    """Raised when a ledger file cannot be read back as a valid chain."""
