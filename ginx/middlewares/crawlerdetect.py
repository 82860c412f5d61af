"""Middleware letting through only verified search engine crawlers."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Callable, Mapping

from ginx.context import Context, HandlerFunc
from ginx.crawlerdetect.strategy import (
    BAIDU,
    BING,
    GOOGLE,
    SOGOU,
    Strategy,
    new_crawler_detector,
)

__all__ = ["BAIDU", "BING", "GOOGLE", "SOGOU", "Builder"]

_log = logging.getLogger(__name__)

DetectorFactory = Callable[[str], "Strategy | None"]


class Builder:
    """Builds the crawler check; user agents map to crawler names."""

    def __init__(self, detector_factory: DetectorFactory | None = None) -> None:
        self._detector_factory = (
            detector_factory if detector_factory is not None else new_crawler_detector
        )
        self._crawlers: dict[str, str] = {
            "Baiduspider": BAIDU,
            "Baiduspider-render": BAIDU,
            "bingbot": BING,
            "adidxbot": BING,
            "MicrosoftPreview": BING,
            "Googlebot": GOOGLE,
            "Googlebot-Image": GOOGLE,
            "Googlebot-News": GOOGLE,
            "Googlebot-Video": GOOGLE,
            "Storebot-Google": GOOGLE,
            "Google-InspectionTool": GOOGLE,
            "GoogleOther": GOOGLE,
            "Google-Extended": GOOGLE,
            "Sogou web spider": SOGOU,
        }

    @property
    def user_agents(self) -> dict[str, str]:
        """A copy of the user-agent to crawler mapping."""
        return dict(self._crawlers)

    def add_user_agent(self, user_agents: Mapping[str, list[str]]) -> Builder:
        """Add user agents, given as crawler name -> list of user-agent markers."""
        for crawler, values in user_agents.items():
            for user_agent in values:
                self._crawlers[user_agent] = crawler
        return self

    def remove_user_agent(self, *args: str) -> Builder:
        for user_agent in args:
            self._crawlers.pop(user_agent, None)
        return self

    def build(self) -> HandlerFunc:
        def middleware(ctx: Context) -> None:
            user_agent = ctx.header("User-Agent")
            ip = ctx.client_ip()
            if not ip:
                _log.error("crawlerdetect: ip is empty")
                ctx.abort_with_status(HTTPStatus.FORBIDDEN)
                return
            detector = self._detector_for(user_agent)
            if detector is None:
                ctx.abort_with_status(HTTPStatus.FORBIDDEN)
                return
            try:
                passed = detector.check_crawler(ip)
            except Exception as exc:
                _log.error("crawlerdetect: %s", exc)
                ctx.abort_with_status(HTTPStatus.INTERNAL_SERVER_ERROR)
                return
            if not passed:
                ctx.abort_with_status(HTTPStatus.FORBIDDEN)
                return
            ctx.next()

        return middleware

    def _detector_for(self, user_agent: str) -> Strategy | None:
        for marker, crawler in self._crawlers.items():
            if marker in user_agent:
                return self._detector_factory(crawler)
        return None