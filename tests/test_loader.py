"""Tests for allowlist document loading."""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import httpx
import pytest

from candy_allowlist.loader import (
    AllowListSourceError,
    load_allowlists,
    parse_allowlists,
)


def _mock_client(mock_client_cls, resp=None, side_effect=None):
    mock_ctx = MagicMock()
    mock_ctx.__enter__ = MagicMock(return_value=mock_ctx)
    mock_ctx.__exit__ = MagicMock(return_value=False)
    if side_effect is not None:
        mock_ctx.get.side_effect = side_effect
    else:
        mock_ctx.get.return_value = resp
    mock_client_cls.return_value = mock_ctx
    return mock_ctx


class TestParse:
    def test_plain_list_is_default_group(self):
        [allowlist] = parse_allowlists(["a", "b"])
        assert allowlist.group_label == "default"
        assert allowlist.wallets == ["a", "b"]

    def test_plain_list_custom_label(self):
        [allowlist] = parse_allowlists(["a"], default_group="public")
        assert allowlist.group_label == "public"

    def test_mapping(self):
        allowlists = parse_allowlists({"vip": ["a"], "og": ["b", "c"]})
        assert [(a.group_label, a.wallets) for a in allowlists] == [
            ("vip", ["a"]),
            ("og", ["b", "c"]),
        ]

    def test_group_objects(self):
        allowlists = parse_allowlists([{"group_label": "vip", "list": ["a", "b"]}])
        assert allowlists[0].group_label == "vip"
        assert allowlists[0].wallets == ["a", "b"]

    def test_group_object_missing_list(self):
        with pytest.raises(AllowListSourceError):
            parse_allowlists([{"group_label": "vip"}])

    def test_mapping_with_non_list_value(self):
        with pytest.raises(AllowListSourceError):
            parse_allowlists({"vip": 5})

    def test_scalar_document(self):
        with pytest.raises(AllowListSourceError):
            parse_allowlists(42)


class TestLoadFile:
    def test_load_file(self, tmp_path):
        path = tmp_path / "allowlist.json"
        path.write_text(json.dumps({"default": ["a", "b", "c"]}))
        [allowlist] = load_allowlists(path)
        assert allowlist.wallets == ["a", "b", "c"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(AllowListSourceError):
            load_allowlists(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "allowlist.json"
        path.write_text("{not json")
        with pytest.raises(AllowListSourceError):
            load_allowlists(path)


class TestLoadUrl:
    @patch("candy_allowlist.loader.httpx.Client")
    def test_fetch(self, mock_client_cls):
        resp = MagicMock()
        resp.json.return_value = ["a", "b"]
        mock_ctx = _mock_client(mock_client_cls, resp=resp)

        [allowlist] = load_allowlists("https://cdn.example/allowlist.json")

        assert allowlist.wallets == ["a", "b"]
        resp.raise_for_status.assert_called_once()
        assert mock_ctx.get.call_args[0][0] == "https://cdn.example/allowlist.json"

    @patch("candy_allowlist.loader.httpx.Client")
    def test_http_error(self, mock_client_cls):
        _mock_client(mock_client_cls, side_effect=httpx.ConnectError("connection refused"))
        with pytest.raises(AllowListSourceError, match="Failed to fetch"):
            load_allowlists("https://cdn.example/allowlist.json")

    @patch("candy_allowlist.loader.httpx.Client")
    def test_bad_json_body(self, mock_client_cls):
        resp = MagicMock()
        resp.json.side_effect = json.JSONDecodeError("bad", "doc", 0)
        _mock_client(mock_client_cls, resp=resp)
        with pytest.raises(AllowListSourceError, match="not valid JSON"):
            load_allowlists("http://cdn.example/allowlist.json")
