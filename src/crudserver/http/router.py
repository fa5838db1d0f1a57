"""
=============================================================================
URL ROUTER
=============================================================================

Maps (method, path) to a handler, extracting typed path parameters on the
way. The router replaces hand-rolled string splitting such as

    segments = path.split("/")
    if len(segments) >= 3 and segments[1] == "about": ...

with declared patterns:

    router.add_route("/about/:id", about)           # id is a str
    router.add_route("/users/:id:int", get_user)    # id is an int

=============================================================================
PATTERN SYNTAX
=============================================================================

    /users              static segment, exact match
    /:name              one segment, passed to the handler as str
    /:name:int          one segment, converted to int; "abc" → 400
    /*rest              everything that remains, slashes included; may be
                        empty, so "/about/*rest" also matches "/about"

Compiled to an anchored regex:

    "/users/:id:int"  →  ^/users/(?P<id>[^/]+)$   + converters {"id": int}

The typed segment still matches ANY text so that "/users/abc" is recognised
as "the user item route, with a bad id" (400) rather than "no such route"
(404).

=============================================================================
DISPATCH OUTCOMES
=============================================================================

The first registered pattern that matches the path owns the request.
Only routes sharing that pattern are considered for the method:

    path + method match, params convert   → handler(request)
    path + method match, a param is bad   → 400 "Invalid id: 'abc'"
    path matches, method does not         → 405 + Allow header
    nothing matches                       → 404

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Dict, Any, List
import re

from .request import HTTPRequest
from .response import HTTPResponse, bad_request, not_found, method_not_allowed


Handler = Callable[[HTTPRequest], HTTPResponse]


def _to_int(raw: str) -> int:
    # int() alone would accept " 7", "+7" and "1_000"
    if not re.fullmatch(r"-?[0-9]+", raw):
        raise ValueError(raw)
    return int(raw)


CONVERTERS: Dict[str, Callable[[str], Any]] = {
    "str": str,
    "int": _to_int,
}


class PathParamError(ValueError):
    """A path segment matched a typed parameter but failed conversion."""

    def __init__(self, name: str, raw: str):
        super().__init__(f"Invalid {name}: {raw!r}")
        self.name = name
        self.raw = raw


@dataclass
class Route:
    """
    A registered route.

        Route(path="/users/:id:int", method="GET", handler=..., name="user")
    """

    path: str
    method: Optional[str]            # None = any method
    handler: Handler
    name: Optional[str] = None

    _pattern: Optional[re.Pattern] = field(default=None, repr=False)
    _converters: Dict[str, Callable[[str], Any]] = field(default_factory=dict, repr=False)

    def convert(self, raw_params: Dict[str, str]) -> Dict[str, Any]:
        """Apply each parameter's converter, raising PathParamError on failure."""
        params: Dict[str, Any] = {}
        for name, raw in raw_params.items():
            try:
                params[name] = self._converters[name](raw)
            except ValueError:
                raise PathParamError(name, raw) from None
        return params


@dataclass
class RouteMatch:
    """A matched route plus its converted path parameters."""
    route: Route
    params: Dict[str, Any]


class Router:
    """
    Static routing table.

        router = Router()
        router.add_route("/users/:id:int", get_user, method="GET", name="user")
        router.add_route("/*rest", home)                 # catch-all, last

        router.handle(HTTPRequest(method="GET", path="/users/7"))

    The first registered pattern matching the path owns it; the method is
    then chosen among the routes sharing that pattern.
    """

    def __init__(self):
        self._routes: List[Route] = []
        self._named_routes: Dict[str, Route] = {}

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def add_route(
        self,
        path: str,
        handler: Handler,
        method: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Route:
        """
        Register a handler for a path pattern.

        Args:
            path: Pattern such as "/users/:id:int".
            handler: Callable taking an HTTPRequest, returning an HTTPResponse.
            method: HTTP method, or None to accept any method.
            name: Optional name for url_for().

        Raises:
            ValueError: On an unknown converter or a duplicate parameter name.
        """
        pattern, converters = self._compile_pattern(path)

        route = Route(
            path=path,
            method=method.upper() if method else None,
            handler=handler,
            name=name,
            _pattern=pattern,
            _converters=converters,
        )
        self._routes.append(route)

        if name:
            self._named_routes[name] = route

        return route

    def _compile_pattern(self, path: str) -> tuple[re.Pattern, Dict[str, Callable[[str], Any]]]:
        """
        Compile a pattern into an anchored regex and its converters.

            "/username/:id"  →  ^/username/(?P<id>[^/]+)$, {"id": str}
            "/"              →  ^/$, {}
            "/*rest"         →  ^(?:/(?P<rest>.*))?$, {"rest": str}
        """
        converters: Dict[str, Callable[[str], Any]] = {}
        regex_parts = ["^"]

        for segment in path.split("/"):
            if not segment:
                continue

            if segment.startswith("*"):
                # The tail is optional: "/about/*rest" also matches "/about"
                param_name = segment[1:] or "wildcard"
                converters[param_name] = str
                regex_parts.append(f"(?:/(?P<{param_name}>.*))?")
                break

            regex_parts.append("/")

            if segment.startswith(":"):
                param_name, _, type_name = segment[1:].partition(":")
                type_name = type_name or "str"
                if type_name not in CONVERTERS:
                    raise ValueError(f"Unknown converter {type_name!r} in route {path}")
                if param_name in converters:
                    raise ValueError(f"Duplicate parameter {param_name!r} in route {path}")
                converters[param_name] = CONVERTERS[type_name]
                regex_parts.append(f"(?P<{param_name}>[^/]+)")

            else:
                regex_parts.append(re.escape(segment))

        if len(regex_parts) == 1:
            regex_parts.append("/")  # the root route "/"

        regex_parts.append("$")
        return re.compile("".join(regex_parts)), converters

    # =========================================================================
    # MATCHING
    # =========================================================================

    @staticmethod
    def _normalize(path: str) -> str:
        # "/users/" and "/users" are the same resource
        return "/" + path.strip("/") if path != "/" else "/"

    def find_route(self, path: str) -> Optional[Route]:
        """
        The route that owns a path: the first registered pattern matching
        it, whatever its method. None means 404.
        """
        path = self._normalize(path)

        for route in self._routes:
            if route._pattern.match(path):
                return route

        return None

    def _siblings(self, owner: Route) -> List[Route]:
        # Every method registered under the owner's pattern
        return [route for route in self._routes if route.path == owner.path]

    def match(self, method: str, path: str) -> Optional[RouteMatch]:
        """
        Find the route for method and path.

        The path picks its owning pattern first; only routes registered
        under that pattern compete on method. A catch-all registered last
        therefore never steals a wrong-method request from a known path.

        Returns:
            RouteMatch with converted params, or None.

        Raises:
            PathParamError: If the route matched but a typed param did not convert.
        """
        owner = self.find_route(path)
        if owner is None:
            return None

        method = method.upper()

        for route in self._siblings(owner):
            if route.method and route.method != method:
                continue

            found = route._pattern.match(self._normalize(path))
            return RouteMatch(route=route, params=route.convert(found.groupdict(default="")))

        return None

    def get_allowed_methods(self, path: str) -> List[str]:
        """Methods registered for a path; feeds the Allow header of a 405."""
        owner = self.find_route(path)
        if owner is None:
            return []

        methods = set()
        for route in self._siblings(owner):
            if route.method is None:
                return ["DELETE", "GET", "HEAD", "OPTIONS", "PATCH", "POST", "PUT"]
            methods.add(route.method)

        return sorted(methods)

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Dispatch a request.

        The converted parameters are stored on request.path_params before
        the handler runs.
        """
        try:
            match = self.match(request.method, request.path)
        except PathParamError as e:
            return bad_request(str(e))

        if match:
            request.path_params = match.params
            return match.route.handler(request)

        allowed = self.get_allowed_methods(request.path)
        if allowed:
            return method_not_allowed(allowed)

        return not_found(f"No route matches {request.path}")

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    def url_for(self, name: str, **params: Any) -> Optional[str]:
        """
        Build the path of a named route.

            router.url_for("user", id=7)   # "/users/7"

        Returns None for an unknown name. A wildcard left out is empty.

        Raises:
            KeyError: If a ":" parameter of the pattern is not supplied.
        """
        route = self._named_routes.get(name)
        if not route:
            return None

        segments = []
        for segment in route.path.split("/"):
            if segment.startswith(":"):
                param_name = segment[1:].partition(":")[0]
                segments.append(str(params[param_name]))
            elif segment.startswith("*"):
                segments.append(str(params.get(segment[1:] or "wildcard", "")))
            else:
                segments.append(segment)

        return "/".join(segments) or "/"

    def routes(self) -> List[Route]:
        return list(self._routes)
