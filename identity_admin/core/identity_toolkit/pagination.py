"""Cursor-based pagination over Identity Toolkit collections.

A ``PageSource`` loads one batch of records for a page size and an opaque
page token. ``PageFactory`` validates the listing parameters and performs the
fetch, producing an immutable ``Page``. ``Page.iterate_all()`` walks every
record from that page onwards, fetching each subsequent page only when the
previous one is used up.

Usage:
    page = PageFactory(UserPageSource(client), max_results=500).create()
    for user in page.iterate_all():
        print(user.uid)

    # Page by page
    while page is not None:
        handle(page.values)
        page = page.get_next_page()
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Generic, Optional, Protocol, Tuple, TypeVar

from .exceptions import NoSuchElementError, SourceFetchError, UnsupportedOperationError
from .validators import END_OF_LIST, validate_max_results, validate_page_token

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Batch(Generic[T]):
    """One page worth of records plus the token of the following page.

    ``next_page_token`` is ``END_OF_LIST`` when the service has no more data.
    """

    items: Tuple[T, ...]
    next_page_token: str

    def __post_init__(self) -> None:
        if self.next_page_token is None:
            raise ValueError("next_page_token must not be None; use END_OF_LIST")
        object.__setattr__(self, "items", tuple(self.items))


class PageSource(Protocol[T]):
    """A remote collection that can be loaded one batch at a time.

    Implementations map an absent next token in the service response to
    ``END_OF_LIST``.
    """

    max_page_size: int

    def fetch(self, max_results: int, page_token: Optional[str]) -> Batch[T]:
        ...


class Page(Generic[T]):
    """One page of records from a ``PageSource``.

    Instances are immutable and may be shared between threads.
    """

    __slots__ = ("_batch", "_source", "_max_results")

    def __init__(self, batch: Batch[T], source: PageSource[T], max_results: int):
        object.__setattr__(self, "_batch", batch)
        object.__setattr__(self, "_source", source)
        object.__setattr__(self, "_max_results", max_results)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def has_next_page(self) -> bool:
        return self._batch.next_page_token != END_OF_LIST

    @property
    def next_page_token(self) -> str:
        """Token of the next page; ``END_OF_LIST`` (empty string) when there is none."""
        return self._batch.next_page_token

    @property
    def values(self) -> Tuple[T, ...]:
        """Records in this page, in the order the service returned them."""
        return self._batch.items

    @property
    def max_results(self) -> int:
        return self._max_results

    def get_next_page(self) -> Optional["Page[T]"]:
        """Fetch the page that follows this one.

        Returns:
            The next page, or None if this is the last page

        Raises:
            SourceFetchError: If the service call fails
        """
        if not self.has_next_page:
            return None
        factory = PageFactory(self._source, self._max_results, self._batch.next_page_token)
        return factory.create()

    def iterate_all(self) -> "PageIterable[T]":
        """Return an iterable over all records from this page to the end of the collection.

        Each iterator obtained from the result starts again at this page and
        never buffers more than one page. Iterators may be abandoned at any time.
        """
        return PageIterable(self)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(values={len(self._batch.items)}, "
            f"has_next_page={self.has_next_page})"
        )


class PageFactory(Generic[T]):
    """Creates ``Page`` instances after validating listing parameters.

    Validation happens in the constructor so that malformed requests fail
    without a remote call.
    """

    def __init__(
        self,
        source: PageSource[T],
        max_results: Optional[int] = None,
        page_token: Optional[str] = None,
    ):
        if source is None:
            raise ValueError("source must not be None")
        if max_results is None:
            max_results = source.max_page_size
        self.source = source
        self.max_results = validate_max_results(max_results, source.max_page_size)
        self.page_token = validate_page_token(page_token)

    def create(self) -> Page[T]:
        """Fetch one batch from the source and wrap it in a page.

        Raises:
            SourceFetchError: Propagated unchanged from the source
        """
        logger.debug(
            f"Fetching page from {type(self.source).__name__} "
            f"(max_results={self.max_results}, first_page={self.page_token is None})"
        )
        batch = self.source.fetch(self.max_results, self.page_token)
        return Page(batch, self.source, self.max_results)


@dataclass(frozen=True)
class IterationStep(Generic[T]):
    """Outcome of one ``LazyIterator.step()``: an item, the end, or an error."""

    value: Optional[T] = None
    error: Optional[SourceFetchError] = None
    done: bool = False

    @classmethod
    def item(cls, value: T) -> "IterationStep[T]":
        return cls(value=value)

    @classmethod
    def end(cls) -> "IterationStep[T]":
        return cls(done=True)

    @classmethod
    def failed(cls, error: SourceFetchError) -> "IterationStep[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None and not self.done

    def unwrap(self) -> T:
        """Return the item, raising the stored error or ``NoSuchElementError``."""
        if self.error is not None:
            raise self.error
        if self.done:
            raise NoSuchElementError()
        return self.value


class PageIterable(Generic[T]):
    """Re-iterable view over all records starting at a given page."""

    def __init__(self, starting_page: Page[T]):
        if starting_page is None:
            raise ValueError("starting page must not be None")
        self.starting_page = starting_page

    def __iter__(self) -> "LazyIterator[T]":
        return LazyIterator(self.starting_page)


class LazyIterator(Generic[T]):
    """Single-pass iterator that cycles through records one at a time.

    Buffers the records of the current page only. The next page is fetched on
    the calling thread when the current one is exhausted and another record
    is requested. Not safe to share between threads.
    """

    def __init__(self, starting_page: Page[T]):
        self._set_current_page(starting_page)

    def __iter__(self) -> "LazyIterator[T]":
        return self

    def has_next(self) -> bool:
        """Return True if another record is available, fetching pages as needed.

        Raises:
            SourceFetchError: If loading the next page fails
        """
        # Pages may legally be empty while more data is pending
        while self._index >= len(self._items):
            if not self._current_page.has_next_page:
                return False
            self._set_current_page(self._current_page.get_next_page())
        return True

    def __next__(self) -> T:
        if not self.has_next():
            raise NoSuchElementError()
        value = self._items[self._index]
        self._index += 1
        return value

    def step(self) -> IterationStep[T]:
        """Advance by one record, reporting fetch failures in the result.

        A failed step leaves the iterator where it was, so it can be retried.
        """
        try:
            if not self.has_next():
                return IterationStep.end()
        except SourceFetchError as exc:
            logger.warning(f"Failed to load next page: {exc}")
            return IterationStep.failed(exc)
        return IterationStep.item(next(self))

    def remove(self) -> None:
        raise UnsupportedOperationError("remove operation not supported")

    def _set_current_page(self, page: Page[T]) -> None:
        if page is None:
            raise ValueError("page must not be None")
        self._current_page = page
        self._items = tuple(page.values)
        self._index = 0
