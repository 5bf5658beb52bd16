"""Tests for the command line: argument validation and full runs.

``build_http_session`` is patched so the full-run tests crawl an in-memory
site, and ``configure_logging`` is patched so the CLI does not replace
pytest's log handlers.
"""

from __future__ import annotations

import argparse
import json
from unittest.mock import patch

import pytest

from spiderman.cli import (
    INVALID_DOMAIN,
    INVALID_PARALLEL,
    ROOT_DOMAIN_ONLY,
    main,
    parse_domain,
    parse_duration,
)
from spiderman.config import ConfigurationError

from conftest import ROOT, FakeHttp, html

SITE = {
    ROOT: html("/a", "http://external.test/"),
    f"{ROOT}/a": html(),
}


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("spiderman.cli.configure_logging"):
        yield


@pytest.fixture
def site():
    http = FakeHttp(SITE)
    with patch("spiderman.session.build_http_session", return_value=http):
        yield http


class TestParseDuration:
    @pytest.mark.parametrize("value, seconds", [
        ("1s", 1.0),
        ("0", 0.0),
        ("0s", 0.0),
        ("250ms", 0.25),
        ("1.5s", 1.5),
        ("2m", 120.0),
        ("1m30s", 90.0),
        ("1h", 3600.0),
        ("500us", 0.0005),
    ])
    def test_valid(self, value: str, seconds: float) -> None:
        assert parse_duration(value) == pytest.approx(seconds)

    def test_missing_unit(self) -> None:
        with pytest.raises(argparse.ArgumentTypeError, match="missing unit"):
            parse_duration("1")

    @pytest.mark.parametrize("value", ["foo", "", "1x", "s", "1s foo"])
    def test_invalid(self, value: str) -> None:
        with pytest.raises(argparse.ArgumentTypeError, match="invalid duration"):
            parse_duration(value)


class TestParseDomain:
    def test_root_domain(self) -> None:
        assert parse_domain("http://localhost:8000") == ROOT

    def test_trailing_slash_is_dropped(self) -> None:
        assert parse_domain("https://example.com/") == "https://example.com"

    @pytest.mark.parametrize("value", ["http://localhost:8000/foo/bar", "http://example.com/?q=1"])
    def test_path_rejected(self, value: str) -> None:
        with pytest.raises(ConfigurationError, match=ROOT_DOMAIN_ONLY):
            parse_domain(value)

    @pytest.mark.parametrize("value", ["monzo.com", "ftp://example.com", "http://", "http://host:port"])
    def test_not_a_domain(self, value: str) -> None:
        with pytest.raises(ConfigurationError, match=INVALID_DOMAIN):
            parse_domain(value)


class TestMain:
    def test_no_command_prints_help(self, capsys) -> None:
        assert main([]) == 0
        assert "crawl" in capsys.readouterr().out

    def test_crawl_help(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc:
            main(["crawl", "--help"])
        assert exc.value.code == 0
        out = capsys.readouterr().out
        assert "--depth" in out and "--parallel" in out and "--wait" in out

    def test_domain_with_path(self, capsys, site) -> None:
        assert main(["crawl", "http://localhost:8000/foo/bar"]) == 1
        assert capsys.readouterr().err == f"Error: {ROOT_DOMAIN_ONLY}\n"
        assert site.calls == []

    def test_domain_without_scheme(self, capsys, site) -> None:
        assert main(["crawl", "monzo.com"]) == 1
        assert capsys.readouterr().err == f"Error: {INVALID_DOMAIN}\n"

    def test_parallel_zero(self, capsys, site) -> None:
        assert main(["crawl", ROOT, "--parallel", "0"]) == 1
        assert INVALID_PARALLEL in capsys.readouterr().err

    @pytest.mark.parametrize("args", [
        ["--depth", "foo"],
        ["--parallel", "foo"],
        ["--wait", "foo"],
        ["--wait", "1"],
    ])
    def test_bad_flag_values(self, capsys, site, args) -> None:
        with pytest.raises(SystemExit) as exc:
            main(["crawl", ROOT, *args])
        assert exc.value.code == 2
        assert site.calls == []

    def test_wait_without_unit_message(self, capsys) -> None:
        with pytest.raises(SystemExit):
            main(["crawl", ROOT, "--wait", "1"])
        assert 'missing unit in duration "1"' in capsys.readouterr().err

    def test_full_run_prints_tables_in_order(self, capsys, site) -> None:
        assert main(["crawl", ROOT, "--wait", "0s", "--parallel", "1"]) == 0
        out = capsys.readouterr().out

        root_row = f"| {ROOT} | {ROOT}/a |"
        leaf_row = f"| {ROOT}/a | None            |"
        assert root_row in out
        assert leaf_row in out
        assert out.index(root_row) < out.index(leaf_row)
        assert "external.test" not in out

    def test_full_run_depth_one(self, capsys, site) -> None:
        assert main(["crawl", ROOT, "--wait", "0s", "--parallel", "1", "--depth", "1"]) == 0
        out = capsys.readouterr().out

        assert f"| {ROOT} | None            |" in out
        assert f"{ROOT}/a" not in out
        assert site.calls == [ROOT]

    def test_json_output(self, capsys, site) -> None:
        assert main(["crawl", ROOT, "--wait", "0s", "--parallel", "1", "--json"]) == 0
        payload = json.loads(capsys.readouterr().out)

        assert [p["url"] for p in payload] == [ROOT, f"{ROOT}/a"]
        assert payload[0]["links"] == [f"{ROOT}/a"]
        assert payload[1]["parent"] == ROOT

    def test_verbose_prints_summary(self, capsys, site) -> None:
        assert main(["crawl", ROOT, "--wait", "0s", "--verbose"]) == 0
        err = capsys.readouterr().err
        assert "CRAWL SUMMARY" in err
        assert "Total pages crawled:    2" in err

    def test_trailing_slash_root(self, capsys, site) -> None:
        assert main(["crawl", ROOT + "/", "--wait", "0s", "--parallel", "1"]) == 0
        assert site.calls[0] == ROOT
