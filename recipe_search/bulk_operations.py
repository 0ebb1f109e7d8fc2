"""
Bulk operations for Azure Cosmos DB

Fires many independent single-item operations concurrently, waits for all of
them and reports one summary for the batch.

Each operation is wrapped so that its outcome (success or failure) is captured
as an OperationResponse instead of raising. A failure in one write never
cancels or fails its siblings. Request units are collected from the
x-ms-request-charge response header, including the charge Cosmos DB reports on
failed requests.

Usage:
    bulk = BulkOperations()
    for recipe in recipes:
        bulk.add(functools.partial(container.create_item, body=recipe.to_document()), recipe)
    summary = await bulk.execute()

No retries are performed here; a failed operation is recorded as-is.
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Awaitable, Callable, Generic, List, Mapping, Optional, Tuple, TypeVar

from azure.cosmos.exceptions import CosmosHttpResponseError

T = TypeVar("T")

REQUEST_CHARGE_HEADER = "x-ms-request-charge"

# An operation is called with a response_hook keyword and returns an awaitable,
# e.g. functools.partial(container.create_item, body=doc)
Operation = Callable[..., Awaitable[Any]]


def request_charge(headers: Optional[Mapping[str, Any]]) -> float:
    """Read the request charge from response headers (0.0 when absent)."""
    if not headers:
        return 0.0
    value = headers.get(REQUEST_CHARGE_HEADER)
    if value in (None, ""):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


@dataclass(frozen=True)
class OperationResponse(Generic[T]):
    """Result of a single operation in a bulk batch."""

    item: T
    is_successful: bool
    request_units_consumed: float = 0.0
    exception: Optional[Exception] = None


@dataclass(frozen=True)
class BulkOperationResponse(Generic[T]):
    """Summary of the results of a bulk batch."""

    total_time_taken: timedelta
    successful_documents: int = 0
    total_request_units_consumed: float = 0.0
    failures: Tuple[Tuple[T, Exception], ...] = ()

    def __str__(self) -> str:
        return (
            f"{self.successful_documents} succeeded, {len(self.failures)} failed, "
            f"{self.total_request_units_consumed:.2f} RU, "
            f"{self.total_time_taken.total_seconds() * 1000:.2f}ms"
        )


async def capture_operation_response(operation: Operation, item: T) -> OperationResponse[T]:
    """
    Await one operation and capture its outcome.

    Args:
        operation: Callable accepting a response_hook keyword argument
        item: The item being operated on, reported back in the outcome

    Returns:
        OperationResponse: Never raises for failures of the operation itself
    """
    headers = {}

    def _response_hook(response_headers, *args):
        headers.update(response_headers or {})

    try:
        await operation(response_hook=_response_hook)
        return OperationResponse(
            item=item,
            is_successful=True,
            request_units_consumed=request_charge(headers),
        )
    except CosmosHttpResponseError as e:
        # Cosmos DB charges request units on failed requests too
        return OperationResponse(
            item=item,
            is_successful=False,
            request_units_consumed=request_charge(getattr(e, "headers", None)),
            exception=e,
        )
    except Exception as e:
        return OperationResponse(item=item, is_successful=False, exception=e)


class BulkOperations(Generic[T]):
    """
    Fan-out/fan-in runner for a batch of operations.

    Must be created inside a running event loop: add() schedules each
    operation as a task straight away, and execute() is the single join point.
    The timer starts at construction and stops once every task has resolved.
    """

    def __init__(self):
        self.tasks: List["asyncio.Task[OperationResponse[T]]"] = []
        self._start = time.perf_counter()

    def add(self, operation: Operation, item: T) -> None:
        """Dispatch an operation without waiting for it."""
        self.tasks.append(asyncio.ensure_future(capture_operation_response(operation, item)))

    async def execute(self) -> BulkOperationResponse[T]:
        """Wait for all operations and return the batch summary."""
        results: List[OperationResponse[T]] = list(await asyncio.gather(*self.tasks))
        elapsed = time.perf_counter() - self._start

        return BulkOperationResponse(
            total_time_taken=timedelta(seconds=elapsed),
            successful_documents=sum(1 for r in results if r.is_successful),
            total_request_units_consumed=sum((r.request_units_consumed for r in results), 0.0),
            failures=tuple((r.item, r.exception) for r in results if not r.is_successful),
        )
