"""Broadcast channels and the build products and reload signals sent over them."""

from __future__ import annotations

import asyncio
import json
import logging
import threading
import weakref
from collections import deque
from dataclasses import dataclass, field
from typing import Any, ClassVar, Deque, Iterable, Optional

from .logger import TRACE

log = logging.getLogger(__name__)


class ChannelLagged(Exception):
    """The receiver fell behind and ``skipped`` values were dropped."""

    def __init__(self, skipped: int) -> None:
        super().__init__(f"channel lagged by {skipped}")
        self.skipped = skipped


def _wake(waiter: asyncio.Future) -> None:
    if not waiter.done():
        waiter.set_result(None)


class Receiver:
    """One subscriber's bounded queue; the oldest values drop when it is full."""

    def __init__(self, capacity: int) -> None:
        self._capacity = capacity
        self._queue: Deque[Any] = deque()
        self._lagged = 0
        self._lock = threading.Lock()
        self._waiter: Optional[asyncio.Future] = None

    def _push(self, value: Any) -> None:
        with self._lock:
            if len(self._queue) >= self._capacity:
                self._queue.popleft()
                self._lagged += 1
            self._queue.append(value)
            waiter, self._waiter = self._waiter, None
        if waiter is not None:
            try:
                waiter.get_loop().call_soon_threadsafe(_wake, waiter)
            except RuntimeError:
                pass  # the waiting loop is already closed

    async def recv(self) -> Any:
        """Next value; raises ChannelLagged once after values were dropped."""
        while True:
            with self._lock:
                if self._lagged:
                    skipped, self._lagged = self._lagged, 0
                    raise ChannelLagged(skipped)
                if self._queue:
                    return self._queue.popleft()
                waiter = asyncio.get_running_loop().create_future()
                self._waiter = waiter
            try:
                await waiter
            finally:
                with self._lock:
                    if self._waiter is waiter:
                        self._waiter = None


class Broadcast:
    """Sends every value to all live receivers; safe to send from any thread."""

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._receivers: "weakref.WeakSet[Receiver]" = weakref.WeakSet()
        self._lock = threading.Lock()

    def subscribe(self) -> Receiver:
        receiver = Receiver(self.capacity)
        with self._lock:
            self._receivers.add(receiver)
        return receiver

    def send(self, value: Any) -> int:
        """Deliver ``value``; return how many receivers got it."""
        with self._lock:
            receivers = list(self._receivers)
        for receiver in receivers:
            receiver._push(value)
        return len(receivers)


@dataclass(frozen=True)
class Outcome:
    """Result of building one product: success with a value, stopped or failed."""

    kind: str
    value: Any = None

    @classmethod
    def success(cls, value: Any) -> "Outcome":
        return cls("success", value)

    @classmethod
    def stopped(cls) -> "Outcome":
        return cls("stopped")

    @classmethod
    def failed(cls) -> "Outcome":
        return cls("failed")

    def is_success(self) -> bool:
        return self.kind == "success"


@dataclass(frozen=True)
class Product:
    """A build product; style products carry the name of their file."""

    kind: str
    style_name: str = ""

    SERVER: ClassVar["Product"]
    FRONT: ClassVar["Product"]
    ASSETS: ClassVar["Product"]
    NONE: ClassVar["Product"]

    @classmethod
    def style(cls, name: str) -> "Product":
        return cls("Style", name)

    @property
    def is_style(self) -> bool:
        return self.kind == "Style"

    def __str__(self) -> str:
        return self.style_name if self.is_style else self.kind


Product.SERVER = Product("Server")
Product.FRONT = Product("Front")
Product.ASSETS = Product("Assets")
Product.NONE = Product("None")


@dataclass(frozen=True)
class ProductSet:
    """The products that were successfully rebuilt."""

    products: frozenset = field(default_factory=frozenset)

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[Outcome]) -> "ProductSet":
        return cls(
            frozenset(
                outcome.value
                for outcome in outcomes
                if outcome.is_success() and outcome.value != Product.NONE
            )
        )

    def is_empty(self) -> bool:
        return not self.products

    def only_style(self) -> bool:
        return len(self.products) == 1 and any(p.is_style for p in self.products)

    def contains_any(self, products: Iterable[Product]) -> bool:
        return any(product in self.products for product in products)

    def __contains__(self, product: object) -> bool:
        return product in self.products

    def __len__(self) -> int:
        return len(self.products)

    def __str__(self) -> str:
        return ", ".join(sorted(str(product) for product in self.products))


@dataclass(frozen=True)
class ReloadType:
    """What the browser should reload; view patches carry their JSON."""

    kind: str
    data: Optional[str] = None

    FULL: ClassVar["ReloadType"]
    STYLE: ClassVar["ReloadType"]

    @classmethod
    def view_patches(cls, data: str) -> "ReloadType":
        return cls("ViewPatches", data)


ReloadType.FULL = ReloadType("Full")
ReloadType.STYLE = ReloadType("Style")


_SERVER_RESTART = Broadcast(1)
_RELOAD = Broadcast(1)


def subscribe_server_restart() -> Receiver:
    return _SERVER_RESTART.subscribe()


def send_server_restart() -> None:
    log.log(TRACE, "Server restart sent")
    if not _SERVER_RESTART.send(None):
        log.error("Error could not send product changes due to no active receivers")


def subscribe_reload() -> Receiver:
    return _RELOAD.subscribe()


def _send_reload(reload: ReloadType, label: str) -> None:
    if not _RELOAD.send(reload):
        log.error('Error could not send reload "%s" due to: no active receivers', label)


def send_full_reload() -> None:
    _send_reload(ReloadType.FULL, "Full")


def send_style_reload() -> None:
    _send_reload(ReloadType.STYLE, "Style")


def send_view_patches(patches: Any) -> None:
    """Serialise ``patches`` to JSON and broadcast them as a view reload."""
    try:
        data = json.dumps(patches)
    except (TypeError, ValueError) as exc:
        log.error('Error could not send reload "View Patches" due to: %s', exc)
        return
    _send_reload(ReloadType.view_patches(data), "View Patches")