"""
Session lifecycle against a fake backend.

Tests cover:
    - Start-up decision: no token, silent refresh, who-am-I fallback
    - One normalized user shape across init, login and profile update
    - Cache invalidation after successful profile mutations only
    - Local logout even when the server call fails
    - 401 handling from arbitrary call sites
"""

import asyncio
import json

import pytest

from coachshare.models import normalize_user
from coachshare.services.errors import (
    ClientRequestError,
    MissingResponseDataError,
    UnauthorizedError,
)


def envelope(user, **extra):
    return {"status": "success", "data": {"user": user}, **extra}


# Session initialization


@pytest.mark.asyncio
async def test_no_token_starts_unauthenticated(api, backend):
    session = await api.auth.initialize_session()

    assert session.is_authenticated is False
    assert session.user is None
    assert backend.calls == []


@pytest.mark.asyncio
async def test_refresh_success_restores_session(api, backend, store, make_user):
    store.set_token("old")
    backend.add(
        "POST", "/auth/refresh-token", (200, envelope(make_user(), token="new"))
    )

    session = await api.auth.initialize_session()

    assert session.is_authenticated is True
    assert session.user.name == "Ana Silva"
    assert session.user.id == "u1"
    assert store.token == "new"
    assert backend.count("GET", "/auth/me") == 0
    refresh = backend.last("POST", "/auth/refresh-token")
    assert refresh.headers["Authorization"] == "Bearer old"


@pytest.mark.asyncio
async def test_refresh_failure_falls_back_to_who_am_i(
    api, backend, store, make_user, redirects
):
    store.set_token("still-valid")
    backend.add("POST", "/auth/refresh-token", (500, {"message": "boom"}))
    backend.add("GET", "/auth/me", (200, envelope(make_user())))

    session = await api.auth.initialize_session()

    assert session.is_authenticated is True
    assert session.user.email == "ana@example.com"
    assert store.token == "still-valid"
    assert redirects == []


@pytest.mark.asyncio
async def test_refresh_without_user_falls_back_to_who_am_i(
    api, backend, store, make_user
):
    store.set_token("tok")
    backend.add("POST", "/auth/refresh-token", (200, {"status": "fail"}))
    backend.add("GET", "/auth/me", (200, envelope(make_user())))

    session = await api.auth.initialize_session()

    assert session.is_authenticated is True
    assert backend.count("GET", "/auth/me") == 1


@pytest.mark.asyncio
async def test_rejected_credentials_end_unauthenticated(
    api, backend, store, redirects
):
    store.set_token("expired")
    backend.add("POST", "/auth/refresh-token", (401, {"message": "jwt expired"}))
    backend.add("GET", "/auth/me", (401, {"message": "Not logged in"}))

    session = await api.auth.initialize_session()

    assert session.is_authenticated is False
    assert store.token is None
    assert "/auth/login" in redirects


@pytest.mark.asyncio
async def test_who_am_i_without_user_clears_token(api, backend, store):
    store.set_token("tok")
    backend.add("POST", "/auth/refresh-token", (200, {"status": "fail"}))
    backend.add("GET", "/auth/me", (200, {"status": "success", "data": {}}))

    session = await api.auth.initialize_session()

    assert session.is_authenticated is False
    assert store.token is None


# User normalization


@pytest.mark.asyncio
async def test_same_user_shape_from_every_path(api, backend, store, make_user):
    store.set_token("tok")
    backend.add("POST", "/auth/refresh-token", (500, {}))
    backend.add("GET", "/auth/me", (200, envelope(make_user())))
    from_init = (await api.auth.initialize_session()).user

    backend.add("POST", "/auth/login", (200, envelope(make_user(), token="t2")))
    from_login = (await api.auth.login("ana@example.com", "secret")).user

    backend.add("PATCH", "/auth/update-me", (200, envelope(make_user())))
    from_update = await api.auth.update_profile({"bio": None})

    assert from_init == from_login == from_update
    assert from_init == normalize_user(make_user())
    assert from_init.name == f"{from_init.first_name} {from_init.last_name}"


@pytest.mark.asyncio
async def test_partial_profile_update_keeps_names(api, backend, make_user):
    backend.add("POST", "/auth/login", (200, envelope(make_user(), token="t")))
    await api.auth.login("ana@example.com", "secret")

    backend.add(
        "PATCH", "/auth/update-me", (200, envelope({"_id": "u1", "bio": "Coach"}))
    )
    user = await api.auth.update_profile({"bio": "Coach"})

    assert user.name == "Ana Silva"
    assert user.bio == "Coach"
    assert user.email == "ana@example.com"
    assert api.auth.current_session.user == user


def test_name_is_derived_even_without_last_name():
    user = normalize_user({"id": "u2", "firstName": "Ana"})

    assert user.name == "Ana "


# Login


@pytest.mark.asyncio
async def test_login_stores_token(api, backend, store, make_user):
    backend.add("POST", "/auth/login", (200, envelope(make_user(), token="t1")))

    session = await api.auth.login("ana@example.com", "secret")

    assert session.is_authenticated is True
    assert store.token == "t1"
    assert json.loads(backend.last("POST", "/auth/login").content) == {
        "email": "ana@example.com",
        "password": "secret",
    }


@pytest.mark.asyncio
async def test_login_without_token_fails(api, backend, store, make_user):
    backend.add("POST", "/auth/login", (200, envelope(make_user())))

    with pytest.raises(MissingResponseDataError, match="No token received"):
        await api.auth.login("ana@example.com", "secret")

    assert store.token is None
    assert api.auth.current_session.is_authenticated is False


@pytest.mark.asyncio
async def test_login_with_bad_credentials_propagates(api, backend):
    backend.add("POST", "/auth/login", (400, {"message": "Incorrect password"}))

    with pytest.raises(ClientRequestError) as excinfo:
        await api.auth.login("ana@example.com", "wrong")

    assert excinfo.value.message == "Incorrect password"


# Cache invalidation


@pytest.mark.asyncio
async def test_profile_update_invalidates_cached_user(
    api, backend, store, make_user
):
    store.set_token("tok")
    backend.add(
        "GET",
        "/auth/me",
        (200, envelope(make_user())),
        (200, envelope(make_user(firstName="Ana Maria"))),
    )
    backend.add(
        "PATCH", "/auth/update-me", (200, envelope(make_user(firstName="Ana Maria")))
    )

    before = await api.auth.get_current_user()
    await api.auth.update_profile({"firstName": "Ana Maria"})
    after = await api.auth.get_current_user()

    assert before.name == "Ana Silva"
    assert after.name == "Ana Maria Silva"
    assert backend.count("GET", "/auth/me") == 2


@pytest.mark.asyncio
async def test_failed_profile_update_keeps_cache(api, backend, store, make_user):
    store.set_token("tok")
    backend.add("GET", "/auth/me", (200, envelope(make_user())))
    backend.add("PATCH", "/auth/update-me", (400, {"message": "Invalid email"}))

    await api.auth.get_current_user()
    with pytest.raises(ClientRequestError):
        await api.auth.update_profile({"email": "nope"})
    await api.auth.get_current_user()

    assert backend.count("GET", "/auth/me") == 1


@pytest.mark.asyncio
async def test_password_update_invalidates_cached_user(
    api, backend, store, make_user
):
    store.set_token("tok")
    backend.add("GET", "/auth/me", (200, envelope(make_user())))
    backend.add(
        "PATCH", "/auth/update-password", (200, {"status": "success", "token": "t2"})
    )

    await api.auth.get_current_user()
    await api.auth.update_password("old-secret", "new-secret")
    await api.auth.get_current_user()

    assert backend.count("GET", "/auth/me") == 2
    assert store.token == "t2"


# Current user


@pytest.mark.asyncio
async def test_concurrent_current_user_reads_share_one_call(
    api, backend, store, make_user
):
    store.set_token("tok")
    backend.add("GET", "/auth/me", (200, envelope(make_user())))

    users = await asyncio.gather(*(api.auth.get_current_user() for _ in range(5)))

    assert backend.count("GET", "/auth/me") == 1
    assert all(u == users[0] for u in users)


@pytest.mark.asyncio
async def test_current_user_retries_rate_limit(
    api, backend, store, make_user, sleep
):
    store.set_token("tok")
    backend.add(
        "GET",
        "/auth/me",
        (429, {"message": "Too many requests"}),
        (200, envelope(make_user())),
    )

    user = await api.auth.get_current_user()

    assert user.id == "u1"
    assert backend.count("GET", "/auth/me") == 2
    assert sleep.delays == [0.5]


@pytest.mark.asyncio
async def test_current_user_missing_in_envelope(api, backend, store):
    store.set_token("tok")
    backend.add("GET", "/auth/me", (200, {"status": "success", "data": {}}))

    assert await api.auth.get_current_user() is None


# Ending the session


@pytest.mark.asyncio
async def test_logout_is_local_even_when_server_fails(
    api, backend, store, make_user, redirects
):
    backend.add("POST", "/auth/login", (200, envelope(make_user(), token="t1")))
    backend.add("POST", "/auth/logout", (500, {"message": "down"}))
    await api.auth.login("ana@example.com", "secret")

    await api.auth.logout()

    assert store.token is None
    assert api.auth.current_session.is_authenticated is False
    assert redirects == ["/auth/login"]


@pytest.mark.asyncio
async def test_logout_purges_cached_reads(api, backend, store, make_user):
    store.set_token("tok")
    backend.add("GET", "/auth/me", (200, envelope(make_user())))
    backend.add("POST", "/auth/logout", (200, {"status": "success"}))

    await api.auth.get_current_user()
    await api.auth.logout()

    assert len(api.client.responses.cache) == 0


@pytest.mark.asyncio
async def test_delete_account_goes_home(api, backend, store, redirects):
    store.set_token("tok")
    backend.add("DELETE", "/auth/delete-account", (204, None))

    await api.auth.delete_account()

    assert store.token is None
    assert redirects == ["/"]


@pytest.mark.asyncio
async def test_verify_email_signs_in(api, backend, store, make_user):
    backend.add("GET", "/auth/verify/abc", (200, envelope(make_user(), token="t9")))

    session = await api.auth.verify_email("abc")

    assert session.is_authenticated is True
    assert store.token == "t9"


# 401 from any call site


@pytest.mark.asyncio
async def test_401_anywhere_clears_session_and_redirects(
    api, backend, store, make_user, redirects
):
    store.set_token("tok")
    backend.add("GET", "/auth/me", (200, envelope(make_user())))
    backend.add("GET", "/regimens/coach", (401, {"message": "jwt expired"}))
    await api.auth.get_current_user()

    with pytest.raises(UnauthorizedError):
        await api.regimens.list_coach_regimens()

    assert store.token is None
    assert redirects == ["/auth/login"]
    assert len(api.client.responses.cache) == 0
    assert api.client.responses.get_in_flight_count() == 0


# Tolerant user payloads


def odd_user(make_user):
    return make_user(
        socialLinks={"website": None, "instagram": "@ana"},
        qualifications=[{"title": None, "year": 2019}, "garbage"],
        specialties=["sprint", None, 3],
        coachId={"_id": "c1", "firstName": "Rui"},
        bio=None,
        email=None,
    )


def test_normalize_user_coerces_odd_fields(make_user):
    user = normalize_user(odd_user(make_user))

    assert user.social_links == {"instagram": "@ana"}
    assert [q.title for q in user.qualifications] == [""]
    assert user.qualifications[0].year == 2019
    assert user.specialties == ["sprint"]
    assert user.coach_id == "c1"
    assert user.bio is None
    assert user.email == ""


@pytest.mark.asyncio
async def test_refresh_with_null_sub_fields_restores_session(
    api, backend, store, make_user
):
    store.set_token("old")
    backend.add(
        "POST",
        "/auth/refresh-token",
        (200, envelope(odd_user(make_user), token="new")),
    )

    session = await api.auth.initialize_session()

    assert session.is_authenticated is True
    assert session.user.social_links == {"instagram": "@ana"}
    assert store.token == "new"


@pytest.mark.asyncio
async def test_who_am_i_with_null_sub_fields_restores_session(
    api, backend, store, make_user
):
    store.set_token("tok")
    backend.add("POST", "/auth/refresh-token", (500, {}))
    backend.add("GET", "/auth/me", (200, envelope(odd_user(make_user))))

    session = await api.auth.initialize_session()

    assert session.is_authenticated is True
    assert session.user.name == "Ana Silva"
    assert store.token == "tok"


@pytest.mark.asyncio
async def test_login_with_null_sub_fields(api, backend, store, make_user):
    backend.add(
        "POST", "/auth/login", (200, envelope(odd_user(make_user), token="t1"))
    )

    session = await api.auth.login("ana@example.com", "secret")

    assert session.user.coach_id == "c1"
    assert store.token == "t1"


@pytest.mark.asyncio
async def test_login_without_user_restores_previous_token(api, backend, store):
    store.set_token("previous")
    backend.add(
        "POST", "/auth/login", (200, {"status": "success", "token": "new", "data": {}})
    )

    with pytest.raises(MissingResponseDataError, match="No user received"):
        await api.auth.login("ana@example.com", "secret")

    assert store.token == "previous"
    assert api.auth.current_session.is_authenticated is False


# Account endpoints


@pytest.mark.asyncio
async def test_register_passes_envelope_through(api, backend):
    body = {"status": "success", "verificationToken": "v1", "isExistingUser": False}
    backend.add("POST", "/auth/register", (201, body))
    payload = {"email": "ana@example.com", "password": "secret", "role": "coach"}

    result = await api.auth.register(payload)

    assert result == body
    assert json.loads(backend.last("POST", "/auth/register").content) == payload


@pytest.mark.asyncio
async def test_resend_verification(api, backend):
    backend.add(
        "POST",
        "/auth/resend-verification",
        (200, {"status": "success", "message": "Sent"}),
    )

    result = await api.auth.resend_verification("ana@example.com")

    assert result == {"status": "success", "message": "Sent"}
    request = backend.last("POST", "/auth/resend-verification")
    assert json.loads(request.content) == {"email": "ana@example.com"}


@pytest.mark.asyncio
async def test_forgot_password(api, backend):
    backend.add("POST", "/auth/forgot-password", (200, {"status": "success"}))

    result = await api.auth.forgot_password("ana@example.com")

    assert result == {"status": "success"}
    request = backend.last("POST", "/auth/forgot-password")
    assert json.loads(request.content) == {"email": "ana@example.com"}


@pytest.mark.asyncio
async def test_reset_password(api, backend, store):
    backend.add(
        "PATCH",
        "/auth/reset-password/r3set",
        (200, {"status": "success", "token": "fresh"}),
    )

    result = await api.auth.reset_password("r3set", "new-secret")

    assert result == {"status": "success", "token": "fresh"}
    request = backend.last("PATCH", "/auth/reset-password/r3set")
    assert json.loads(request.content) == {"password": "new-secret"}
    assert store.token == "fresh"
