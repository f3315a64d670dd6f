"""
auth/passwords.py -- bcrypt password hashing and verification.

Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error. Direct bcrypt usage is simpler and has no
compatibility shim.

Security design:
  - bcrypt.gensalt() draws a fresh random salt on every call and embeds it in
    the output, so two hashes of the same password never match byte-for-byte.
  - bcrypt.checkpw() compares digests in constant time.
  - The cost factor (rounds) is the throughput brake: at the default 12 a
    single hash takes roughly 200ms per core, bounding brute-force speed.
  - bcrypt only looks at the first 72 bytes. hash() refuses longer input
    instead of truncating it, so two long passwords with a common prefix can
    never collide.
  - dummy_hash is computed once per hasher so the service can always run one
    verification, even when the email does not exist [C1].

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import bcrypt

# bcrypt ignores everything past this many bytes of input.
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """Salted bcrypt hashing with a configurable cost.

    Usage:
        hasher = PasswordHasher(rounds=12)
        pass_hash = hasher.hash("s3cret")
        hasher.verify(pass_hash, "s3cret")  # True
    """

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds
        # Timing equalization target for unknown emails [C1].
        self.dummy_hash: bytes = self.hash("sso_timing_dummy")

    def hash(self, password: str) -> bytes:
        """Return a salted bcrypt hash of the plaintext password.

        Raises ValueError if the password does not fit bcrypt's 72-byte input.
        """
        raw = password.encode("utf-8")
        if len(raw) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password exceeds {MAX_PASSWORD_BYTES} bytes")
        return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=self.rounds))

    def verify(self, pass_hash: bytes, password: str) -> bool:
        """Return True if the plaintext password matches the bcrypt hash.

        A malformed hash or an over-long password is a mismatch, not an error.
        """
        try:
            return bcrypt.checkpw(password.encode("utf-8"), pass_hash)
        except (ValueError, TypeError):
            return False
