# src/cache/fingerprint.py - v3
"""Report fingerprinting: identity of a (params, namespace, fakes) request.

Both hashes are SHA-1 over newline terminated lines, so they are stable
across processes and match the digests the harness has always written to
its DB.
"""

from __future__ import annotations

import hashlib

from sosharness.cache.models import ReportFingerprint

TREE_PREFIX = "TREE"


def compute_fingerprint(
    params: str,
    namespace: str,
    fake_queue_contents: str,
) -> ReportFingerprint:
    """Compute the fingerprint of a report request.

    Args:
        params: Raw parameter string passed to the report tool.
        namespace: Logical namespace of the request.
        fake_queue_contents: Serialized fake queue.

    Returns:
        ReportFingerprint with parameter and fake hashes.
    """
    return ReportFingerprint(
        param_hash=param_hash(params),
        namespace=namespace,
        fake_hash=fake_hash(fake_queue_contents),
    )


def param_hash(params: str) -> str:
    """Hash of the sorted, non-empty whitespace tokens of ``params``.

    Token order does not matter: ``"b -x a"`` and ``"a b -x"`` collide.
    """
    tokens = sorted(tok for tok in params.split() if tok)
    return _sha1_lines(tokens)


def fake_hash(fake_queue_contents: str) -> str:
    """Hash of the fake queue with TREE entries left out.

    Tree fakes do not take part in report identity yet.
    """
    kept = [
        line for line in fake_queue_contents.splitlines()
        if not line.startswith(TREE_PREFIX)
    ]
    return _sha1_lines(kept)


def _sha1_lines(lines: list[str]) -> str:
    payload = "".join(f"{line}\n" for line in lines)
    return hashlib.sha1(payload.encode("utf-8")).hexdigest()  # noqa: S324
