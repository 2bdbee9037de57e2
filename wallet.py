import binascii
import hashlib
import logging
import re

import ecdsa
from ecdsa.util import sigdecode_string, sigencode_string_canonize

from data_models import CREDENTIAL_ID_BYTES, SIGNATURE_LENGTH, RecoverableSignature
from errors import InvalidSignature, InvalidSignatureLength, VotingError

logger = logging.getLogger(__name__)

CURVE = ecdsa.SECP256k1
# Personal-message style prefix, project specific: the wrapped message is hashed
# with sha256, so these signatures are not interchangeable with wallet personal_sign
MESSAGE_PREFIX = b"\x19Signed Ballot Message:\n"

_CREDENTIAL_RE = re.compile(r"^[0-9a-f]{%d}$" % (CREDENTIAL_ID_BYTES * 2))


# --- KEYS ---
def generate_key_pair():
    # Generate SECP256k1 keys (Bitcoin standard)
    sk = ecdsa.SigningKey.generate(curve=CURVE)
    pk = sk.get_verifying_key()
    return (
        binascii.hexlify(sk.to_string()).decode(),
        binascii.hexlify(pk.to_string()).decode()
    )


def _signing_key(private_key_hex):
    try:
        sk_bytes = binascii.unhexlify(private_key_hex)
        return ecdsa.SigningKey.from_string(sk_bytes, curve=CURVE)
    except (ValueError, TypeError, ecdsa.MalformedPointError) as exc:
        raise ValueError(f"malformed private key: {exc}") from exc


def public_key_of(private_key_hex):
    sk = _signing_key(private_key_hex)
    return binascii.hexlify(sk.get_verifying_key().to_string()).decode()


def normalize_identity(public_key_hex):
    """Return the canonical lowercase form of a holder identity, or raise ValueError."""
    try:
        pk_bytes = binascii.unhexlify(public_key_hex)
        pk = ecdsa.VerifyingKey.from_string(pk_bytes, curve=CURVE)
    except (ValueError, TypeError, ecdsa.MalformedPointError) as exc:
        raise ValueError(f"malformed holder identity: {exc}") from exc
    return binascii.hexlify(pk.to_string()).decode()


# --- CREDENTIAL IDS ---
def derive_credential_id(voter_id):
    # Same one-way masking the ledger used for voter ids; possession of the id grants nothing
    return hashlib.sha256(voter_id.encode("utf-8")).hexdigest()


def is_credential_id(credential_id):
    return isinstance(credential_id, str) and bool(_CREDENTIAL_RE.match(credential_id))


def credential_bytes(credential_id):
    if not is_credential_id(credential_id):
        raise ValueError(f"credential id must be {CREDENTIAL_ID_BYTES * 2} lowercase hex chars")
    return bytes.fromhex(credential_id)


# --- DIGESTS ---
def message_digest(credential_id, candidate_id):
    """
    Bind a (credential, candidate) pair into the 32-byte message a voter signs.

    The credential is fixed width, so the concatenation is unambiguous and a
    change to either field changes the digest.
    """
    return raw_message_digest(credential_bytes(credential_id), candidate_id)


def raw_message_digest(credential_raw, candidate_id):
    if not isinstance(candidate_id, str):
        raise ValueError("candidate id must be a string")
    return hashlib.sha256(credential_raw + candidate_id.encode("utf-8")).digest()


def personal_message_hash(digest):
    prefixed = MESSAGE_PREFIX + str(len(digest)).encode("ascii") + digest
    return hashlib.sha256(prefixed).digest()


# --- SIGNATURES ---
def _signature_bytes(signature):
    if isinstance(signature, (bytes, bytearray)):
        return bytes(signature)
    if isinstance(signature, str):
        text = signature[2:] if signature.startswith(("0x", "0X")) else signature
        try:
            return bytes.fromhex(text)
        except ValueError as exc:
            raise InvalidSignature("signature is not valid hex") from exc
    raise InvalidSignature(f"unsupported signature type {type(signature).__name__}")


def decode_signature(signature):
    """Split a 65-byte signature into r, s and v. Any other length is rejected."""
    raw = _signature_bytes(signature)
    if len(raw) != SIGNATURE_LENGTH:
        raise InvalidSignatureLength(f"signature must be {SIGNATURE_LENGTH} bytes, got {len(raw)}")
    return RecoverableSignature(
        r=int.from_bytes(raw[0:32], "big"),
        s=int.from_bytes(raw[32:64], "big"),
        v=raw[64],
    )


def sign_vote(private_key_hex, digest):
    """Sign a message digest, returning r || s || v with v in {27, 28}."""
    sk = _signing_key(private_key_hex)
    message_hash = personal_message_hash(digest)
    rs = sk.sign_digest_deterministic(
        message_hash, hashfunc=hashlib.sha256, sigencode=sigencode_string_canonize
    )
    own_key = sk.get_verifying_key().to_string()
    recovered = ecdsa.VerifyingKey.from_public_key_recovery_with_digest(
        rs, message_hash, CURVE, hashfunc=hashlib.sha256, sigdecode=sigdecode_string
    )
    for recovery_id, vk in enumerate(recovered):
        if vk.to_string() == own_key:
            return rs + bytes([27 + recovery_id])
    raise ValueError("unable to determine recovery id for signature")


def recover_signer(digest, signature):
    """
    Recover the identity that signed `digest` (after personal-message wrapping).

    Returns None for malformed signatures or when no public key can be recovered.
    """
    try:
        sig = decode_signature(signature)
    except VotingError as exc:
        logger.debug("rejecting malformed signature: %s", exc)
        return None

    order = CURVE.order
    if not (0 < sig.r < order and 0 < sig.s <= order // 2):
        # High-s values are the malleable twin of a canonical signature
        return None
    if sig.recovery_id not in (0, 1):
        return None

    rs = sig.r.to_bytes(32, "big") + sig.s.to_bytes(32, "big")
    try:
        recovered = ecdsa.VerifyingKey.from_public_key_recovery_with_digest(
            rs, personal_message_hash(digest), CURVE,
            hashfunc=hashlib.sha256, sigdecode=sigdecode_string
        )
    except Exception as exc:
        logger.debug("public key recovery failed: %s", exc)
        return None
    if sig.recovery_id >= len(recovered):
        return None
    return binascii.hexlify(recovered[sig.recovery_id].to_string()).decode()
