"""
Unit tests for HTTP request parsing.
"""

import pytest

from crudserver.http.request import HTTPRequest, RequestParser, HTTPParseError


def parse_request(raw: bytes) -> HTTPRequest:
    return RequestParser().parse(raw)


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self, sample_get_request: bytes):
        """Test parsing a simple GET request."""
        parser = RequestParser()
        request = parser.parse(sample_get_request, ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.path == "/username/7"
        assert request.uri == "/username/7?includedetails=true"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("127.0.0.1", 12345)

    def test_parse_headers(self, sample_get_request: bytes):
        """Test that headers are parsed correctly."""
        request = parse_request(sample_get_request)

        assert request.headers["host"] == "localhost:8080"
        assert request.get_header("User-Agent") == "pytest"
        assert request.headers["accept"] == "text/plain"
        assert request.is_keep_alive is True

    def test_parse_query_params(self, sample_get_request: bytes):
        """Test query parameter parsing."""
        request = parse_request(sample_get_request)

        assert request.get_query("includedetails") == "true"
        assert request.get_query("missing") is None
        assert request.get_query("missing", "default") == "default"

    def test_blank_query_value_is_kept(self):
        """Test "?name=" gives "" rather than the default."""
        request = parse_request(b"GET /?name= HTTP/1.1\r\n\r\n")

        assert request.get_query("name", "Guest") == ""

    def test_parse_post_with_body(self, sample_post_request: bytes):
        """Test parsing POST request with JSON body."""
        request = parse_request(sample_post_request)

        assert request.method == "POST"
        assert request.path == "/users"
        assert request.get_header("Content-Type") == "application/json"
        assert request.body == b'{"name": "A", "email": "a@x.com"}'

    def test_parse_path_with_special_chars(self):
        """Test URL-encoded path and query parsing."""
        raw = b"GET /about/a%20b?name=hello%20world HTTP/1.1\r\nHost: test\r\n\r\n"
        request = parse_request(raw)

        assert request.path == "/about/a b"
        assert request.uri == "/about/a%20b?name=hello%20world"
        assert request.get_query("name") == "hello world"

    def test_parse_invalid_method(self):
        """Test that invalid methods are rejected."""
        raw = b"BREW /path HTTP/1.1\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 405

    def test_parse_invalid_request_line(self):
        """Test handling of malformed request line."""
        raw = b"GET\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 400

    def test_parse_unsupported_version(self):
        raw = b"GET / HTTP/2.0\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 505

    def test_parse_no_header_terminator(self):
        with pytest.raises(HTTPParseError):
            parse_request(b"GET / HTTP/1.1\r\nHost: test\r\n")

    def test_parse_missing_headers(self):
        """Test parsing request with no headers."""
        request = parse_request(b"GET / HTTP/1.1\r\n\r\n")

        assert request.method == "GET"
        assert request.path == "/"
        assert len(request.headers) == 0

    def test_parse_path_traversal_blocked(self):
        """Test that path traversal attempts are blocked."""
        raw = b"GET /../../../etc/passwd HTTP/1.1\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert "path" in str(exc_info.value).lower()

    def test_dots_inside_a_segment_are_allowed(self):
        """Only a whole ".." segment is traversal; "a..b" is an ordinary name."""
        request = parse_request(b"GET /about/a..b HTTP/1.1\r\n\r\n")

        assert request.path == "/about/a..b"

    def test_parse_request_too_large(self):
        """Test that oversized requests are rejected."""
        parser = RequestParser(max_request_size=100)
        raw = b"GET / HTTP/1.1\r\n" + b"X-Large: " + b"A" * 200 + b"\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parser.parse(raw)

        assert exc_info.value.status_code == 413

    def test_http_version_parsing(self):
        """Test HTTP/1.0 and HTTP/1.1 keep-alive defaults."""
        request_10 = parse_request(b"GET / HTTP/1.0\r\nHost: test\r\n\r\n")
        assert request_10.version == "HTTP/1.0"
        assert request_10.is_keep_alive is False

        request_11 = parse_request(b"GET / HTTP/1.1\r\nHost: test\r\n\r\n")
        assert request_11.version == "HTTP/1.1"
        assert request_11.is_keep_alive is True

        request_close = parse_request(b"GET / HTTP/1.1\r\nConnection: close\r\n\r\n")
        assert request_close.is_keep_alive is False

    def test_content_length_handling(self):
        """Test the body is cut at Content-Length."""
        raw = (
            b"POST / HTTP/1.1\r\n"
            b"Content-Length: 9\r\n"
            b"\r\n"
            b"test bodyEXTRA"
        )

        request = parse_request(raw)
        assert request.body == b"test body"

    @pytest.mark.parametrize("value", [b"abc", b"-1"])
    def test_invalid_content_length(self, value: bytes):
        raw = b"POST / HTTP/1.1\r\nContent-Length: " + value + b"\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 400

    def test_short_body(self):
        raw = b"POST / HTTP/1.1\r\nContent-Length: 20\r\n\r\nshort"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert "Incomplete body" in str(exc_info.value)

    def test_case_insensitive_headers(self):
        """Test that header names are case-insensitive."""
        raw = b"GET / HTTP/1.1\r\nCONTENT-TYPE: text/html\r\n\r\n"
        request = parse_request(raw)

        assert request.get_header("Content-Type") == "text/html"
        assert request.get_header("content-type") == "text/html"

    def test_repeated_headers_are_folded(self):
        raw = b"GET / HTTP/1.1\r\nAccept: text/plain\r\nAccept: application/json\r\n\r\n"
        request = parse_request(raw)

        assert request.get_header("Accept") == "text/plain, application/json"


class TestHTTPRequest:
    """Tests for HTTPRequest dataclass."""

    def test_uri_defaults_to_path(self):
        request = HTTPRequest(method="GET", path="/api")

        assert request.uri == "/api"

    def test_get_header_default(self):
        """Test get_header with default value."""
        request = HTTPRequest(method="GET", path="/")

        assert request.get_header("X-Missing") == ""
        assert request.get_header("X-Missing", "default") == "default"

    def test_get_query_first_value(self):
        """Test a repeated query param yields its first value."""
        request = HTTPRequest(
            method="GET",
            path="/",
            query_params={"name": ["amaan", "guest"]},
        )

        assert request.get_query("name") == "amaan"
