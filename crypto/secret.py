from cryptography.hazmat.primitives import constant_time, hashes


def secrets_match(presented: str, expected: str) -> bool:
    # Equal-time compare so a JOIN probe learns nothing from reply latency.
    return constant_time.bytes_eq(presented.encode('utf-8'), expected.encode('utf-8'))


def fingerprint(secret: str) -> str:
    """Short SHA-256 fingerprint of the master key, safe to log."""
    digest = hashes.Hash(hashes.SHA256())
    digest.update(secret.encode('utf-8'))
    return digest.finalize().hex()[:16]
