"""
Unit tests for services.sessions (SessionAuthenticator).
Covers marker rotation, supersession, logout and token failure modes.
"""
import asyncio
import datetime as dt

import jwt
import pytest

from netscan.core import errors
from netscan.core.security import JWT_ALG, JWT_SECRET
from netscan.services.sessions import SessionAuthenticator


pytestmark = pytest.mark.asyncio


async def test_start_session_persists_marker(sessions, storage, create_identity):
    identity, _ = await create_identity()
    marker = await sessions.start_session(identity.id)

    record = await storage.get_identity(identity.id)
    assert record.session_marker == marker


async def test_issued_token_verifies(sessions, create_identity):
    identity, _ = await create_identity()
    marker = await sessions.start_session(identity.id)
    token = sessions.issue_token(identity.id, marker)

    claims = await sessions.verify_token(token)
    assert claims.identity_id == identity.id
    assert claims.marker == marker
    assert claims.expires_at - claims.issued_at == dt.timedelta(days=7)


async def test_second_login_supersedes_first(sessions, create_identity):
    identity, _ = await create_identity()
    first = sessions.issue_token(identity.id, await sessions.start_session(identity.id))
    second = sessions.issue_token(identity.id, await sessions.start_session(identity.id))

    with pytest.raises(errors.SessionSuperseded) as exc:
        await sessions.verify_token(first)
    assert exc.value.code == "AUTH_SESSION_SUPERSEDED"
    assert (await sessions.verify_token(second)).identity_id == identity.id


async def test_resolve_applies_the_same_checks_as_verify_token(sessions, create_identity):
    identity, _ = await create_identity()
    first = sessions.issue_token(identity.id, await sessions.start_session(identity.id))
    second = sessions.issue_token(identity.id, await sessions.start_session(identity.id))

    record = await sessions.resolve(second)
    assert record.id == identity.id
    assert record.session_marker == (await sessions.verify_token(second)).marker

    with pytest.raises(errors.SessionSuperseded):
        await sessions.resolve(first)
    with pytest.raises(errors.SessionSuperseded):
        await sessions.verify_token(first)


async def test_markers_are_unique(sessions, create_identity):
    identity, _ = await create_identity()
    markers = {await sessions.start_session(identity.id) for _ in range(20)}
    assert len(markers) == 20


async def test_sessions_of_different_users_are_independent(sessions, create_identity):
    alice, _ = await create_identity()
    bob, _ = await create_identity()
    alice_token = sessions.issue_token(alice.id, await sessions.start_session(alice.id))
    await sessions.start_session(bob.id)
    await sessions.start_session(bob.id)

    assert (await sessions.verify_token(alice_token)).identity_id == alice.id


async def test_end_session_rejects_outstanding_tokens(sessions, create_identity):
    identity, _ = await create_identity()
    token = sessions.issue_token(identity.id, await sessions.start_session(identity.id))

    await sessions.end_session(identity.id)
    with pytest.raises(errors.Unauthenticated) as exc:
        await sessions.verify_token(token)
    assert exc.value.code == "AUTH_SESSION_ENDED"


async def test_expired_token(storage, create_identity):
    short_lived = SessionAuthenticator(storage, expires_delta=dt.timedelta(seconds=-5))
    identity, _ = await create_identity()
    token = short_lived.issue_token(identity.id, await short_lived.start_session(identity.id))

    with pytest.raises(errors.TokenExpired) as exc:
        await short_lived.verify_token(token)
    assert isinstance(exc.value, errors.Unauthenticated)


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
async def test_malformed_token(sessions, token):
    with pytest.raises(errors.TokenMalformed):
        await sessions.verify_token(token)


async def test_forged_signature_is_malformed(sessions, create_identity):
    identity, _ = await create_identity()
    marker = await sessions.start_session(identity.id)
    now = dt.datetime.now(dt.timezone.utc)
    forged = jwt.encode(
        {"sub": identity.id, "sid": marker, "iat": now, "exp": now + dt.timedelta(hours=1)},
        "not-the-secret",
        algorithm=JWT_ALG,
    )
    with pytest.raises(errors.TokenMalformed):
        await sessions.verify_token(forged)


async def test_non_string_claims_are_malformed(sessions):
    now = dt.datetime.now(dt.timezone.utc)
    token = jwt.encode(
        {"sub": "someone", "sid": 12345, "iat": now, "exp": now + dt.timedelta(hours=1)},
        JWT_SECRET,
        algorithm=JWT_ALG,
    )
    with pytest.raises(errors.TokenMalformed):
        await sessions.verify_token(token)


async def test_unknown_subject(sessions):
    token = sessions.issue_token("no-such-user", "marker")
    with pytest.raises(errors.Unauthenticated) as exc:
        await sessions.verify_token(token)
    assert exc.value.code == "AUTH_USER_NOT_FOUND"


async def test_start_session_for_unknown_identity(sessions):
    with pytest.raises(errors.NotFound):
        await sessions.start_session("no-such-user")


async def test_verify_racing_a_login_sees_old_or_new_marker(sessions, create_identity):
    """A verify in flight during re-login either passes or is superseded; nothing else."""
    identity, _ = await create_identity()
    old = sessions.issue_token(identity.id, await sessions.start_session(identity.id))

    results = await asyncio.gather(
        *[sessions.verify_token(old) for _ in range(5)],
        sessions.start_session(identity.id),
        *[sessions.verify_token(old) for _ in range(5)],
        return_exceptions=True,
    )
    for outcome in results[:5] + results[6:]:
        assert not isinstance(outcome, Exception) or isinstance(outcome, errors.SessionSuperseded)
    with pytest.raises(errors.SessionSuperseded):
        await sessions.verify_token(old)
