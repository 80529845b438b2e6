"""
Tests for browser session setup that do not need a browser.
"""

import random

import pytest

from dirsweep.core.browser.session import BrowserSession, make_user_agent, resolve_proxy
from dirsweep.core.config.models import BrowserConfig
from dirsweep.core.errors import SessionError


class TestSessionHelpers:
    """Tests for user agent and proxy resolution."""

    def test_user_agent_is_desktop_chrome(self):
        agent = make_user_agent(random.Random(1))

        assert agent.startswith("Mozilla/5.0 (Windows NT 10.0; Win64; x64)")
        major = int(agent.split("Chrome/")[1].split(".")[0])
        assert 120 <= major <= 125

    def test_configured_proxy_wins(self, monkeypatch):
        monkeypatch.setenv("HTTPS_PROXY", "http://env-https:8080")

        assert resolve_proxy(BrowserConfig(proxy="http://cfg:3128")) == "http://cfg:3128"

    def test_proxy_from_environment(self, monkeypatch):
        monkeypatch.delenv("HTTPS_PROXY", raising=False)
        monkeypatch.setenv("HTTP_PROXY", "http://env-http:8080")

        assert resolve_proxy(BrowserConfig()) == "http://env-http:8080"

        monkeypatch.setenv("HTTPS_PROXY", "http://env-https:8080")
        assert resolve_proxy(BrowserConfig(proxy="")) == "http://env-https:8080"

    def test_no_proxy(self, monkeypatch):
        monkeypatch.delenv("HTTPS_PROXY", raising=False)
        monkeypatch.delenv("HTTP_PROXY", raising=False)

        assert resolve_proxy(BrowserConfig()) is None


class TestBrowserSession:
    """Tests for BrowserSession."""

    def test_launch_options(self, monkeypatch):
        monkeypatch.delenv("HTTPS_PROXY", raising=False)
        monkeypatch.delenv("HTTP_PROXY", raising=False)
        config = BrowserConfig(headless=True, proxy="http://p:1", viewport_jitter_px=10)
        session = BrowserSession(config, rng=random.Random(2))

        options = session._launch_options()

        assert options["headless"] is True
        assert options["proxy"] == {"server": "http://p:1"}
        assert "--disable-blink-features=AutomationControlled" in options["args"]
        assert 1270 <= options["viewport"]["width"] <= 1290
        assert 890 <= options["viewport"]["height"] <= 910
        assert options["user_agent"] == session.user_agent

    def test_stealth_off(self, monkeypatch):
        monkeypatch.delenv("HTTPS_PROXY", raising=False)
        monkeypatch.delenv("HTTP_PROXY", raising=False)
        session = BrowserSession(BrowserConfig(stealth=False, user_agent="UA/1"))

        options = session._launch_options()

        assert not session.stealth
        assert "proxy" not in options
        assert options["user_agent"] == "UA/1"
        assert "--disable-blink-features=AutomationControlled" not in options["args"]

    def test_page_requires_open_session(self):
        with pytest.raises(SessionError):
            BrowserSession(BrowserConfig()).page

    @pytest.mark.asyncio
    async def test_close_without_open(self):
        session = BrowserSession(BrowserConfig())

        await session.close()
