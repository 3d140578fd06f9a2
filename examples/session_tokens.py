#!/usr/bin/env python3
"""
Session Token Example
=====================

Shows signed session cookies with expiry and a secret rotation, using the
configuration layer to build the signers.

Usage:
    python session_tokens.py
"""

import time

from tokenseal import BadSignature, SignatureExpired, create_signing_config


def main():
    """Issue, verify and rotate session tokens."""

    print("=== Session Token Demo ===\n")

    # Day 1: a single secret, tokens valid for one hour
    config = create_signing_config(["secret-2024"], salt="session", max_age=3600)
    sessions = config.build_timed_serializer(sort_keys=True)

    token = sessions.dumps({"user_id": 42, "role": "editor"})
    print(f"🔑 Issued token: {token}")

    session, signed_at = sessions.loads(token, return_timestamp=True)
    print(f"✅ Verified session for user {session['user_id']} (signed {signed_at:%Y-%m-%d %H:%M:%S} UTC)\n")

    # Tampering is detected
    print("🔧 TAMPERING:")
    forged = token.replace(token[0], "A" if token[0] != "A" else "B", 1)
    try:
        sessions.loads(forged)
    except BadSignature as e:
        print(f"❌ Rejected forged token: {type(e).__name__}\n")

    # Day 2: rotate in a new secret, keeping the old one for verification
    print("🔧 SECRET ROTATION:")
    rotated = create_signing_config(["secret-2025", "secret-2024"], salt="session", max_age=3600)
    new_sessions = rotated.build_timed_serializer(sort_keys=True)

    print(f"✅ Old token still valid: {new_sessions.loads(token)}")
    new_token = new_sessions.dumps({"user_id": 42, "role": "editor"})
    try:
        sessions.loads(new_token)
    except BadSignature:
        print("❌ New token rejected by signer without the new secret\n")

    # Expiry
    print("🔧 EXPIRY:")
    short_lived = new_sessions.dumps_with_timestamp({"user_id": 7}, int(time.time()) - 7200)
    try:
        new_sessions.loads(short_lived)
    except SignatureExpired as e:
        print(f"⏰ Expired token rejected: age {e.age}s > {e.max_age}s")

    print("\n✅ Demo complete!")


if __name__ == "__main__":
    main()
