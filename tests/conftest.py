"""Shared fixtures: an in-memory stand-in for ``requests.Session``.

``FakeHttp`` serves a dict of URL -> response so crawls run without a network.
Unknown URLs return a 404, values that are exceptions are raised from ``get``.
"""

from __future__ import annotations

import threading
from collections import Counter
from typing import Dict, List, Union

import pytest
from requests.structures import CaseInsensitiveDict

ROOT = "http://localhost:8000"


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = "", content_type: str = "text/html; charset=utf-8") -> None:
        self.status_code = status_code
        self.text = text
        self.headers = CaseInsensitiveDict()
        if content_type:
            self.headers["Content-Type"] = content_type


class FakeHttp:
    def __init__(self, pages: Dict[str, Union[FakeResponse, str, Exception]]) -> None:
        self.pages = pages
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def get(self, url: str, **kwargs) -> FakeResponse:
        with self._lock:
            self.calls.append(url)
        page = self.pages.get(url)
        if page is None:
            return FakeResponse(404, "Not Found")
        if isinstance(page, Exception):
            raise page
        if isinstance(page, str):
            return FakeResponse(200, page)
        return page

    def call_counts(self) -> Counter:
        with self._lock:
            return Counter(self.calls)

    def close(self) -> None:
        pass


def html(*hrefs: str) -> str:
    """A minimal page linking to each href in order."""
    anchors = "\n".join(f'<a href="{href}">{href}</a>' for href in hrefs)
    return f"<!DOCTYPE html><html><head><title>t</title></head><body>{anchors}</body></html>"


@pytest.fixture
def fake_http():
    """Factory building a FakeHttp from a page mapping."""
    return FakeHttp
