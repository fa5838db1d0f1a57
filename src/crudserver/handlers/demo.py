"""
Demo endpoints: query parameters, path parameters, and both together.

    GET /?name=amaan                          home sweet home amaan
    GET /about/123                            User ID: 123
    GET /username/123?includedetails=true     User id: 123
                                              Details are included
    GET /api                                  Hello World

/about/ and /username/ are prefixes: only the first segment after them is
the id ("/about/1/2" → "1"), and it may be empty ("/about/" → "").
Any other path falls through to home.

All responses are plain text and carry no state.
"""

from ..http import HTTPRequest, HTTPResponse, ok


DEFAULT_NAME = "Guest"


def _first_segment(request: HTTPRequest) -> str:
    return request.path_params.get("rest", "").split("/", 1)[0]


def home(request: HTTPRequest) -> HTTPResponse:
    # "?name=" counts as missing
    name = request.get_query("name") or DEFAULT_NAME
    return ok(f"home sweet home {name}")


def about(request: HTTPRequest) -> HTTPResponse:
    return ok(f"User ID: {_first_segment(request)}")


def username(request: HTTPRequest) -> HTTPResponse:
    """Path segment plus an optional ?includedetails=true line."""
    body = f"User id: {_first_segment(request)}\n"

    if request.get_query("includedetails") == "true":
        body += "Details are included\n"

    return ok(body)


def api_greeting(request: HTTPRequest) -> HTTPResponse:
    return ok("Hello World")
