"""
=============================================================================
MIDDLEWARE FRAMEWORK
=============================================================================

A middleware wraps a handler: it sees the request before the handler
runs and the response after it returns.

    class Timing(Middleware):
        def __call__(self, request, next):
            start = time.monotonic()          # before
            response = next(request)          # the wrapped handler
            response.set_header(              # after
                "X-Elapsed", f"{time.monotonic() - start:.4f}")
            return response

=============================================================================
COMPOSITION
=============================================================================

MiddlewarePipeline turns an ordered list into nested calls. The first
middleware added is the OUTERMOST:

    pipeline = MiddlewarePipeline().use(LoggingMiddleware(), HeaderMiddleware())
    handler = pipeline.wrap(home)

    handler(request) == LoggingMiddleware(request,
                            next=lambda r: HeaderMiddleware(r,
                                next=home))

which is log(header(home)). A pipeline can wrap any number of handlers,
so each route can get its own chain; pipelines hold no per-request state.

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, List
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


# The next middleware, or the final handler
NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    Abstract base class for middleware.

    Subclasses implement __call__(request, next) and must either call
    next(request) or return a response of their own (short-circuit).
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """
        Process the request.

        Args:
            request: The incoming request.
            next: The rest of the chain.

        Returns:
            The response, usually the one next() returned.
        """

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MiddlewarePipeline:
    """
    Ordered middleware, first added = outermost.

        pipeline = MiddlewarePipeline()
        pipeline.add(LoggingMiddleware()).add(HeaderMiddleware())
        handler = pipeline.wrap(router_handler)
    """

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def use(self, *middleware: Middleware) -> "MiddlewarePipeline":
        """Add several middleware at once, in order."""
        for mw in middleware:
            self.add(mw)
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Wrap handler with every middleware in the pipeline.

        Wrapping happens innermost first, hence reversed():

            [A, B, C] + h  →  C(h)  →  B(C(h))  →  A(B(C(h)))
        """
        current = handler

        for middleware in reversed(self._middleware):
            current = self._create_wrapped_handler(middleware, current)

        return current

    @staticmethod
    def _create_wrapped_handler(middleware: Middleware, next_handler: NextHandler) -> NextHandler:
        # Closure binding this middleware to the handler it wraps
        def wrapped(request: HTTPRequest) -> HTTPResponse:
            return middleware(request, next_handler)

        return wrapped

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self):
        return iter(self._middleware)
