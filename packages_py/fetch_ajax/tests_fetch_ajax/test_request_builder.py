"""
Tests for request_builder.py
Logic testing: Decision/Branch, Boundary Value, Path coverage
"""
import json

import pytest

from fetch_ajax.core.request_builder import (
    FormData,
    build_body,
    build_form_data,
    build_get_url,
    encode_uri,
    ensure_content_type,
    has_header,
    is_absolute_url,
    resolve_url,
)


class TestResolveUrl:
    """Tests for resolve_url function."""

    # Decision: no base url
    def test_no_base(self):
        assert resolve_url("/users") == "/users"
        assert resolve_url("/users", "") == "/users"

    # Decision: absolute url bypasses base
    def test_absolute_url_bypasses_base(self):
        assert resolve_url("https://other.com/x", "https://api.example.com") == "https://other.com/x"
        assert resolve_url("ws://other.com/x", "https://api.example.com") == "ws://other.com/x"

    # Path: exactly one slash between base and path
    @pytest.mark.parametrize(
        "base,url",
        [
            ("https://api.example.com", "/users"),
            ("https://api.example.com/", "/users"),
            ("https://api.example.com", "users"),
            ("https://api.example.com/", "users"),
        ],
    )
    def test_single_slash(self, base, url):
        assert resolve_url(url, base) == "https://api.example.com/users"

    # Path: base path kept
    def test_base_path_kept(self):
        assert resolve_url("/users", "https://api.example.com/v1") == "https://api.example.com/v1/users"

    def test_is_absolute_url(self):
        assert is_absolute_url("http://a.com")
        assert not is_absolute_url("/http/path")
        assert not is_absolute_url("httpbin")


class TestBuildGetUrl:
    """Tests for build_get_url function."""

    # Path: dict data in insertion order
    def test_dict_in_insertion_order(self):
        assert build_get_url("/users", {"b": 1, "a": 2}) == "/users?b=1&a=2"

    # Decision: existing query uses &
    def test_existing_query(self):
        assert build_get_url("/users?x=0", {"page": 1}) == "/users?x=0&page=1"

    # Boundary: empty dict leaves url unchanged
    def test_empty_dict(self):
        assert build_get_url("/users", {}) == "/users"

    # Boundary: no data
    def test_none(self):
        assert build_get_url("/users", None) == "/users"

    # Path: string data appended verbatim
    def test_string_data(self):
        assert build_get_url("/users", "a=1&b=2") == "/users?a=1&b=2"
        assert build_get_url("/users?x=1", "a=1") == "/users?x=1&a=1"

    # Equivalence: value formatting
    def test_value_formatting(self):
        url = build_get_url("/s", {"on": True, "off": False, "none": None, "n": 1.5})
        assert url == "/s?on=true&off=false&none=null&n=1.5"

    # Path: values are not encoded by default
    def test_no_encoding_by_default(self):
        assert build_get_url("/s", {"q": "a b"}) == "/s?q=a b"

    # Path: double URI encoding
    def test_double_encoding(self):
        assert build_get_url("/s", {"q": "a b", "r": "x"}, is_encode_url=True) == "/s?q=a%2520b&r=x"

    def test_encode_uri_keeps_reserved(self):
        assert encode_uri("a=1&b=/c?d#e") == "a=1&b=/c?d#e"
        assert encode_uri("é") == "%C3%A9"


class TestBuildBody:
    """Tests for build_body function."""

    def test_none(self):
        assert build_body(None) is None

    # Path: dict serialized to JSON
    def test_dict_to_json(self):
        body = build_body({"name": "test", "n": 1})
        assert json.loads(body) == {"name": "test", "n": 1}

    # Path: list serialized to JSON
    def test_list_to_json(self):
        assert json.loads(build_body([1, 2])) == [1, 2]

    # Decision: str/bytes passthrough
    def test_passthrough(self):
        assert build_body("raw") == "raw"
        assert build_body(b"raw") == b"raw"

    # Decision: FormData passthrough even when is_file
    def test_form_data_passthrough(self):
        form = FormData()
        assert build_body(form, is_file=True) is form

    # Path: is_file builds multipart fields
    def test_is_file_builds_form(self):
        body = build_body({"name": "doc", "files": [b"one", b"two"]}, is_file=True)
        assert isinstance(body, FormData)
        assert body.get_all("files") == [b"one", b"two"]
        assert body.get_all("name") == ["doc"]
        assert len(body) == 3


class TestBuildFormData:
    """Tests for build_form_data function."""

    # Decision: only the files key is split
    def test_only_files_key_split(self):
        form = build_form_data({"tags": ["a", "b"], "files": ("f1", "f2")})
        assert form.get_all("tags") == [["a", "b"]]
        assert form.get_all("files") == ["f1", "f2"]

    def test_order_preserved(self):
        form = build_form_data({"a": 1, "files": [b"x"], "b": 2})
        assert [name for name, _ in form] == ["a", "files", "b"]


class TestEnsureContentType:
    """Tests for ensure_content_type function."""

    def test_sets_default(self):
        headers = ensure_content_type({}, "{}", "application/json")
        assert headers == {"content-type": "application/json"}

    # Decision: case-insensitive existing header
    def test_keeps_existing_header(self):
        headers = ensure_content_type({"Content-Type": "text/plain"}, "x", "application/json")
        assert headers == {"Content-Type": "text/plain"}

    # Decision: no body
    def test_no_body(self):
        assert ensure_content_type({}, None, "application/json") == {}

    # Decision: FormData sets its own boundary
    def test_form_data(self):
        assert ensure_content_type({}, FormData(), "application/json") == {}

    def test_has_header(self):
        assert has_header({"X-Token": "1"}, "x-token")
        assert not has_header({}, "x-token")
