"""Chain view-call capability.

The SDK only ever reads chain state through ``ViewClient.view``; anything
that can answer a Move view function (a node REST API, a test double) can
stand in for it.
"""

from __future__ import annotations

import asyncio
from typing import Any, Protocol, Sequence

import backoff
import requests

from ..logger import TRACE, get_logger

logger = get_logger(__name__)

RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class ViewClient(Protocol):
    async def view(
        self,
        function: str,
        type_arguments: Sequence[str],
        arguments: Sequence[Any],
    ) -> list[Any]: ...


def _is_permanent(exc: Exception) -> bool:
    return (
        isinstance(exc, requests.exceptions.HTTPError)
        and exc.response is not None
        and exc.response.status_code not in RETRYABLE_STATUS
    )


class AptosViewClient:
    """View client for an Aptos-compatible fullnode REST API (``POST /view``)."""

    def __init__(
        self,
        rpc_url: str,
        *,
        request_timeout: float = 15.0,
        max_tries: int = 3,
        session: requests.Session | None = None,
    ):
        self._url = rpc_url.rstrip("/") + "/view"
        self._request_timeout = request_timeout
        self._max_tries = max(1, max_tries)
        self._session = session or requests.Session()

    async def view(
        self,
        function: str,
        type_arguments: Sequence[str],
        arguments: Sequence[Any],
    ) -> list[Any]:
        body = {
            "function": function,
            "type_arguments": list(type_arguments),
            "arguments": list(arguments),
        }

        def _on_backoff(details: Any) -> None:
            logger.debug(
                "View call %s failed (attempt %d of %d): %s",
                function,
                details["tries"],
                self._max_tries,
                details.get("exception"),
            )

        @backoff.on_exception(
            backoff.expo,
            requests.exceptions.RequestException,
            max_tries=self._max_tries,
            giveup=_is_permanent,
            jitter=backoff.full_jitter,
            on_backoff=_on_backoff,
        )
        async def _post() -> list[Any]:
            response = await asyncio.to_thread(
                self._session.post,
                self._url,
                json=body,
                timeout=self._request_timeout,
            )
            response.raise_for_status()
            return response.json()

        logger.log(TRACE, "view %s type_args=%s args=%s", function, type_arguments, arguments)
        result = await _post()
        if not isinstance(result, list):
            raise ValueError(f"Unexpected view response for {function}: {result!r}")
        return result
