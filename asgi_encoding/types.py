from typing import (
    Any,
    Awaitable,
    Callable,
    List,
    Mapping,
    MutableMapping,
    Optional,
)

from multidict import CIMultiDict

Scope = MutableMapping[str, Any]
Message = MutableMapping[str, Any]
Receive = Callable[[], Awaitable[Message]]
Send = Callable[[Message], Awaitable[None]]
ASGIApp = Callable[[Scope, Receive, Send], Awaitable[None]]


class Headers(CIMultiDict[str]):
    def __init__(
        self,
        headers: Optional[Mapping[str, str]] = None,
        raw: Optional[list[tuple[bytes, bytes]]] = None,
        scope: Optional[Scope] = None,
    ) -> None:
        headers_list: List[tuple[str, str]] = []
        if headers is not None:
            assert raw is None, 'Cannot set both "headers" and "raw".'
            assert scope is None, 'Cannot set both "headers" and "scope".'
            headers_list = list(headers.items())
        elif raw is not None:
            assert scope is None, 'Cannot set both "raw" and "scope".'
            headers_list = [
                (key.decode("latin-1"), value.decode("latin-1"))
                for key, value in raw
            ]
        elif scope is not None:
            # scope["headers"] may be any iterable of pairs
            headers_list = [
                (key.decode("latin-1"), value.decode("latin-1"))
                for key, value in scope.get("headers", ())
            ]

        super().__init__(headers_list)

    def get_joined(self, key: str) -> Optional[str]:
        """Return every value of a repeated header joined with ", "."""
        values = self.getall(key, [])
        if not values:
            return None
        return ", ".join(values)

    def add_vary_header(self, vary: str) -> None:
        existing = self.get_joined("vary")
        if existing is not None:
            values = [x.strip().lower() for x in existing.split(",")]
            # "*" already varies on everything
            if vary.lower() in values or "*" in values:
                vary = existing
            else:
                vary = f"{existing}, {vary}"

        self["vary"] = vary

    def encode(self) -> list[tuple[bytes, bytes]]:
        return [
            (key.lower().encode("latin-1"), value.encode("latin-1"))
            for key, value in self.items()
        ]
