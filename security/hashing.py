import base64
import hashlib

import bcrypt

DEFAULT_ROUNDS = 12


def normalize_answer(answer: str) -> str:
    return answer.strip().casefold()


def _prehash(value: str) -> bytes:
    # bcrypt only reads 72 bytes; a fixed-size digest keeps long input intact
    digest = hashlib.sha256(value.encode("utf-8")).digest()
    return base64.b64encode(digest)


def generate_salt(rounds: int = DEFAULT_ROUNDS) -> str:
    return bcrypt.gensalt(rounds=rounds).decode("utf-8")


def hash_answer(answer: str, salt: str) -> str:
    """Salted hash of the normalized answer. The salt is stored beside it."""
    if not isinstance(answer, str) or not answer.strip():
        raise ValueError("Answer must be a non-empty string")
    hashed = bcrypt.hashpw(_prehash(normalize_answer(answer)), salt.encode("utf-8"))
    return hashed.decode("utf-8")


def verify_answer(answer: str, answer_hash: str) -> bool:
    if not answer or not answer_hash:
        return False
    try:
        return bcrypt.checkpw(
            _prehash(normalize_answer(answer)),
            answer_hash.encode("utf-8"),
        )
    except ValueError:
        # malformed stored hash
        return False


_dummy_hashes = {}


def burn_verify(answer: str, rounds: int = DEFAULT_ROUNDS) -> None:
    """Spend one answer check's worth of time without a stored hash to compare against."""
    dummy = _dummy_hashes.get(rounds)
    if dummy is None:
        dummy = _dummy_hashes[rounds] = hash_answer("placeholder answer", generate_salt(rounds))
    verify_answer(answer or "x", dummy)


def hash_password(plain_password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    if not isinstance(plain_password, str) or len(plain_password) == 0:
        raise ValueError("Password must be a non-empty string")

    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(_prehash(plain_password), salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not plain_password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(
            _prehash(plain_password),
            password_hash.encode("utf-8")
        )
    except ValueError:
        return False
