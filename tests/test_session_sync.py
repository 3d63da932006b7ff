import asyncio
import json

import httpx
import pytest
from supabase import AuthApiError

from estoque.client import AuthSessionSync, SessionState
from estoque.schemas import AuthEvent, ExternalSession

LOCAL_USER = {"id": 7, "email": "ana@restaurante.com", "role": "operador", "companyId": 1}


def sync_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://api.test")


def ok_handler(requests):
    def handler(request: httpx.Request):
        requests.append(request)
        return httpx.Response(200, json={"user": LOCAL_USER})
    return handler


def test_mount_without_user_is_anonymous(identity):
    identity.user = None

    async def scenario():
        requests = []
        async with sync_client(ok_handler(requests)) as http:
            sync = AuthSessionSync(identity, http)
            await sync.mount()
            return sync, requests

    sync, requests = asyncio.run(scenario())

    assert sync.state == SessionState.READY
    assert sync.user is None
    assert sync.loading is False
    assert requests == []


def test_mount_syncs_user_with_bearer_token(identity, external_user):
    async def scenario():
        requests = []
        async with sync_client(ok_handler(requests)) as http:
            sync = AuthSessionSync(identity, http)
            await sync.mount()
            return sync, requests

    sync, requests = asyncio.run(scenario())

    assert sync.user == LOCAL_USER
    assert sync.is_authenticated
    assert not sync.loading
    assert len(requests) == 1
    assert requests[0].url.path == "/api/auth/sync-user"
    assert requests[0].headers["Authorization"] == "Bearer T1"
    assert json.loads(requests[0].content)["user"]["id"] == external_user.id


def test_sign_in_sets_user_only_after_sync_resolves(identity, external_user):
    identity.user = None

    async def scenario():
        started = asyncio.Event()
        release = asyncio.Event()

        async def handler(request):
            started.set()
            await release.wait()
            return httpx.Response(200, json={"user": LOCAL_USER})

        async with sync_client(handler) as http:
            sync = AuthSessionSync(identity, http)
            await sync.mount()

            identity.user = external_user
            identity.emit(AuthEvent.SIGNED_IN, ExternalSession(access_token="T1", user=external_user))
            await started.wait()

            during = (sync.state, sync.user, sync.is_authenticated)
            release.set()
            await sync.wait_idle()
            return during, sync

    during, sync = asyncio.run(scenario())

    assert during == (SessionState.SYNCING, None, False)
    assert sync.user == LOCAL_USER
    assert sync.is_authenticated


def test_refresh_token_error_forces_single_sign_out(identity):
    identity.get_user_error = AuthApiError(
        "Invalid Refresh Token: Refresh Token Not Found", 400, "refresh_token_not_found"
    )

    async def scenario():
        async with sync_client(ok_handler([])) as http:
            sync = AuthSessionSync(identity, http)
            await sync.mount()
            await sync.wait_idle()
            return sync

    sync = asyncio.run(scenario())

    assert identity.sign_out_calls == 1
    assert sync.user is None
    assert sync.loading is False


def test_other_identity_errors_end_anonymous_without_sign_out(identity):
    identity.get_user_error = AuthApiError("Service unavailable", 503, None)

    async def scenario():
        async with sync_client(ok_handler([])) as http:
            sync = AuthSessionSync(identity, http)
            await sync.mount()
            return sync

    sync = asyncio.run(scenario())

    assert identity.sign_out_calls == 0
    assert sync.user is None
    assert sync.loading is False


def test_missing_session_token_forces_sign_out(identity):
    identity.token = None

    async def scenario():
        requests = []
        async with sync_client(ok_handler(requests)) as http:
            sync = AuthSessionSync(identity, http)
            await sync.mount()
            return sync, requests

    sync, requests = asyncio.run(scenario())

    assert identity.sign_out_calls == 1
    assert sync.user is None
    assert requests == []


@pytest.mark.parametrize("status_code, sign_outs", [(401, 1), (500, 0), (404, 0)])
def test_sync_failures(identity, status_code, sign_outs):
    async def scenario():
        async with sync_client(lambda request: httpx.Response(status_code, text="erro")) as http:
            sync = AuthSessionSync(identity, http)
            await sync.mount()
            return sync

    sync = asyncio.run(scenario())

    assert identity.sign_out_calls == sign_outs
    assert sync.user is None
    assert sync.loading is False


def test_network_error_ends_anonymous(identity):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async def scenario():
        async with sync_client(handler) as http:
            sync = AuthSessionSync(identity, http)
            await sync.mount()
            return sync

    sync = asyncio.run(scenario())

    assert identity.sign_out_calls == 0
    assert sync.user is None
    assert sync.state == SessionState.READY


def test_unmount_before_sync_resolves_discards_result(identity):
    async def scenario():
        started = asyncio.Event()
        release = asyncio.Event()

        async def handler(request):
            started.set()
            await release.wait()
            return httpx.Response(200, json={"user": LOCAL_USER})

        async with sync_client(handler) as http:
            sync = AuthSessionSync(identity, http)
            notifications = []
            sync.add_listener(lambda s: notifications.append(s.state))

            mount = asyncio.ensure_future(sync.mount())
            await started.wait()
            snapshot = (sync.state, sync.user, list(notifications))

            sync.unmount()
            release.set()
            await mount
            return sync, snapshot, notifications

    sync, snapshot, notifications = asyncio.run(scenario())

    assert (sync.state, sync.user, notifications) == snapshot
    assert sync.user is None
    assert identity.callbacks == []


def test_concurrent_syncs_share_one_request(identity, external_user):
    async def scenario():
        calls = []
        started = asyncio.Event()
        release = asyncio.Event()

        async def handler(request):
            calls.append(request)
            started.set()
            await release.wait()
            return httpx.Response(200, json={"user": LOCAL_USER})

        async with sync_client(handler) as http:
            sync = AuthSessionSync(identity, http)
            mount = asyncio.ensure_future(sync.mount())
            await started.wait()

            identity.emit(AuthEvent.SIGNED_IN, ExternalSession(access_token="T1", user=external_user))
            identity.emit(AuthEvent.TOKEN_REFRESHED, ExternalSession(access_token="T1", user=external_user))

            release.set()
            await mount
            await sync.wait_idle()
            return sync, calls

    sync, calls = asyncio.run(scenario())

    assert len(calls) == 1
    assert sync.user == LOCAL_USER


def test_signed_out_event_clears_user(identity):
    async def scenario():
        async with sync_client(ok_handler([])) as http:
            sync = AuthSessionSync(identity, http)
            await sync.mount()
            identity.emit(AuthEvent.SIGNED_OUT, None)
            return sync

    sync = asyncio.run(scenario())

    assert sync.user is None
    assert sync.state == SessionState.READY


@pytest.mark.parametrize("via_event", [False, True])
def test_sync_in_flight_does_not_restore_signed_out_user(identity, external_user, via_event):
    identity.user = None

    async def scenario():
        calls = []
        started = asyncio.Event()
        release = asyncio.Event()

        async def handler(request):
            calls.append(request)
            if len(calls) == 1:
                started.set()
                await release.wait()
            return httpx.Response(200, json={"user": LOCAL_USER})

        async with sync_client(handler) as http:
            sync = AuthSessionSync(identity, http)
            await sync.mount()

            identity.user = external_user
            identity.emit(AuthEvent.SIGNED_IN, ExternalSession(access_token="T1", user=external_user))
            await started.wait()

            if via_event:
                identity.emit(AuthEvent.SIGNED_OUT, None)
            else:
                await sync.sign_out()
            release.set()
            await sync.wait_idle()
            after_sign_out = (sync.state, sync.user, sync.is_authenticated)

            # novo login depois do sign-out sincroniza normalmente
            identity.emit(AuthEvent.SIGNED_IN, ExternalSession(access_token="T1", user=external_user))
            await sync.wait_idle()
            return after_sign_out, sync, calls

    after_sign_out, sync, calls = asyncio.run(scenario())

    assert after_sign_out == (SessionState.READY, None, False)
    assert len(calls) == 2
    assert sync.user == LOCAL_USER


def test_sign_out_clears_user(identity):
    async def scenario():
        async with sync_client(ok_handler([])) as http:
            sync = AuthSessionSync(identity, http)
            await sync.mount()
            await sync.sign_out()
            return sync

    sync = asyncio.run(scenario())

    assert identity.sign_out_calls == 1
    assert sync.user is None


def test_sign_out_failure_propagates(identity):
    identity.sign_out_error = AuthApiError("Session not found", 403, "session_not_found")

    async def scenario():
        async with sync_client(ok_handler([])) as http:
            sync = AuthSessionSync(identity, http)
            await sync.mount()
            with pytest.raises(AuthApiError):
                await sync.sign_out()
            return sync

    sync = asyncio.run(scenario())

    assert sync.user == LOCAL_USER


def test_listeners_see_every_transition(identity):
    async def scenario():
        async with sync_client(ok_handler([])) as http:
            sync = AuthSessionSync(identity, http)
            states = []
            sync.add_listener(lambda s: states.append((s.state, s.user is not None)))
            await sync.mount()
            return states

    states = asyncio.run(scenario())

    assert states == [(SessionState.SYNCING, False), (SessionState.READY, True)]
