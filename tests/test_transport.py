"""
Proxy selection, request configuration and session transport tests.

Run with:
    python -m pytest tests/test_transport.py -v
"""

import asyncio
import random
import re
from collections import Counter

import httpx
import pytest

from services.runway import NetworkError, ProxyEndpoint, StaticFingerprint
from services.runway.fingerprint import RandomFingerprint
from services.runway.transport import (
    ApiSession,
    CancelHandle,
    ProxySelector,
    RequestConfigBuilder,
)

from conftest import API_KEY

DIRECT = "https://api.runwayml.com"

SEC_CH_UA = re.compile(
    r'^"(Chromium|Google Chrome|Not-A\.Brand)";v="(\d+)", '
    r'"(Chromium|Google Chrome|Not-A\.Brand)";v="(\d+)", '
    r'"Not-A\.Brand";v="(\d+)"$'
)


class CountingFingerprint(StaticFingerprint):
    def __init__(self):
        super().__init__()
        self.calls = 0

    def sec_ch_ua(self) -> str:
        self.calls += 1
        return f'"Chromium";v="{self.calls}", "Google Chrome";v="1", "Not-A.Brand";v="1"'


class TestProxySelector:

    def test_empty_pool_always_goes_direct(self):
        selector = ProxySelector([], DIRECT)
        for _ in range(50):
            assert selector.select() == (None, DIRECT)

    def test_single_proxy_is_always_chosen(self):
        proxy = ProxyEndpoint(id="s0", server="https://proxy-0.example.com")
        selector = ProxySelector([proxy], DIRECT)
        assert selector.select() == (proxy, proxy.server)

    def test_choice_is_uniform_over_pool(self):
        random.seed(20240531)
        pool = [ProxyEndpoint(id=f"s{i}", server=f"https://proxy-{i}.example.com") for i in range(4)]
        selector = ProxySelector(pool, DIRECT)

        draws = 8000
        counts = Counter(selector.select()[0].id for _ in range(draws))

        expected = draws / len(pool)
        assert set(counts) == {p.id for p in pool}
        for count in counts.values():
            assert abs(count - expected) < expected * 0.1


class TestRequestConfigBuilder:

    def test_direct_config(self, config):
        builder = RequestConfigBuilder(config, StaticFingerprint())
        request_config = builder.build()

        assert request_config.timeout == 60.0
        assert request_config.proxied is False
        assert isinstance(request_config.cancel, CancelHandle)
        assert request_config.max_body_length is None
        assert request_config.max_content_length is None
        assert "Sec-Ch-Ua" in request_config.headers
        assert request_config.headers["Origin"] == "https://app.runwayml.com"
        assert "X-Proxy-Api-Key" not in request_config.headers
        assert "X-Target-Host" not in request_config.headers
        assert "x-trace-id" not in request_config.headers

    def test_proxied_config_adds_proxy_headers(self, config):
        builder = RequestConfigBuilder(config, StaticFingerprint())
        headers = builder.build(trace_id="trace-123", via_proxy=True).headers

        assert headers["X-Proxy-Api-Key"] == "proxy-secret"
        assert headers["X-Target-Host"] == "api.runwayml.com"
        assert headers["x-trace-id"] == "trace-123"
        assert headers["x-start-at"].isdigit()

    def test_proxied_config_generates_trace_id(self, config):
        builder = RequestConfigBuilder(config, StaticFingerprint())
        trace_id = builder.build(via_proxy=True).headers["x-trace-id"]

        assert re.fullmatch(r"[0-9A-Za-z]{16}", trace_id)

    def test_sec_ch_ua_regenerated_per_call(self, config):
        fingerprint = CountingFingerprint()
        builder = RequestConfigBuilder(config, fingerprint)

        first = builder.build().headers["Sec-Ch-Ua"]
        second = builder.build(via_proxy=True).headers["Sec-Ch-Ua"]

        assert fingerprint.calls == 2
        assert first != second

    def test_each_config_gets_its_own_cancel_handle(self, config):
        builder = RequestConfigBuilder(config, StaticFingerprint())
        assert builder.build().cancel is not builder.build().cancel


class TestRandomFingerprint:

    def test_sec_ch_ua_format(self):
        fingerprint = RandomFingerprint(random.Random(7))
        for _ in range(100):
            match = SEC_CH_UA.match(fingerprint.sec_ch_ua())
            assert match
            versions = [int(match.group(i)) for i in (2, 4, 5)]
            assert all(1 <= v <= 100 for v in versions)

    def test_user_agent_is_chrome(self):
        assert "Chrome/" in RandomFingerprint().user_agent()


class TestApiSession:

    @pytest.mark.asyncio
    async def test_direct_request_carries_bearer_and_browser_headers(self, config, credential):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"user": {"id": 1, "gpuCredits": 5}})

        session = ApiSession(
            credential, [], config=config,
            fingerprint=StaticFingerprint(), transport=httpx.MockTransport(handler),
        )
        user = await session.get_profile()
        await session.close()

        assert user == {"id": 1, "gpuCredits": 5}
        request = seen[0]
        assert str(request.url) == "https://api.runwayml.com/v1/profile"
        assert request.headers["Authorization"] == f"Bearer {API_KEY}"
        assert request.headers["User-Agent"] == StaticFingerprint().user_agent()
        assert "x-target-host" not in request.headers

    @pytest.mark.asyncio
    async def test_proxied_request_is_sent_to_proxy_with_target_host(self, config, credential):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"user": {"id": 1}})

        proxy = ProxyEndpoint(id="s0", server="https://proxy-0.example.com/")
        session = ApiSession(
            credential, [proxy], config=config,
            fingerprint=StaticFingerprint(), transport=httpx.MockTransport(handler),
        )
        response, base_url = await session.request("GET", "/v1/profile", trace_id="abc")
        await session.close()

        assert response.status_code == 200
        assert base_url == proxy.server
        assert str(seen[0].url) == "https://proxy-0.example.com/v1/profile"
        assert seen[0].headers["x-target-host"] == "api.runwayml.com"
        assert seen[0].headers["x-proxy-api-key"] == "proxy-secret"
        assert seen[0].headers["x-trace-id"] == "abc"

    @pytest.mark.asyncio
    async def test_transport_failure_becomes_network_error(self, config, credential):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        session = ApiSession(
            credential, [], config=config,
            fingerprint=StaticFingerprint(), transport=httpx.MockTransport(handler),
        )
        with pytest.raises(NetworkError) as exc_info:
            await session.request("GET", "/v1/profile")
        await session.close()

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_profile_error_status_becomes_network_error(self, config, credential):
        session = ApiSession(
            credential, [], config=config, fingerprint=StaticFingerprint(),
            transport=httpx.MockTransport(lambda request: httpx.Response(401, json={})),
        )
        with pytest.raises(NetworkError) as exc_info:
            await session.get_profile()
        await session.close()

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_cancel_handle_aborts_in_flight_request(self, config, credential):
        never = asyncio.Event()

        async def handler(request):
            await never.wait()
            return httpx.Response(200, json={})

        session = ApiSession(
            credential, [], config=config,
            fingerprint=StaticFingerprint(), transport=httpx.MockTransport(handler),
        )
        cancel = CancelHandle()

        attempt = asyncio.create_task(session.request("GET", "/v1/profile", cancel=cancel))
        await asyncio.sleep(0.01)
        cancel.cancel()

        with pytest.raises(NetworkError, match="cancelled"):
            await attempt
        await session.close()

    @pytest.mark.asyncio
    async def test_handle_cancelled_before_send_aborts_immediately(self, config, credential):
        session = ApiSession(
            credential, [], config=config, fingerprint=StaticFingerprint(),
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={})),
        )
        cancel = CancelHandle()
        cancel.cancel()

        with pytest.raises(NetworkError, match="cancelled"):
            await session.request("GET", "/v1/profile", cancel=cancel)
        await session.close()
