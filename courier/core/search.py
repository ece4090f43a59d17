"""Message explorer search over GraphQL."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import requests

from courier.config import CourierConfig
from courier.core.encoding import build_query_variables
from courier.core.matching_list import (
    DESTINATION_DOMAIN,
    ORIGIN_DOMAIN,
    RECIPIENT_ADDRESS,
    SENDER_ADDRESS,
    MatchingList,
)
from courier.core.utils import get_logger

LOGGER = get_logger("courier.search")

SEARCH_QUERY = """
query Message(
  $senderAddress: [bytea!],
  $recipientAddress: [bytea!],
  $originDomain: [Int!],
  $destinationDomain: [Int!],
  $limit: Int!
) {
  message(
    where: {
      sender: {_in: $senderAddress},
      recipient: {_in: $recipientAddress},
      origin: {_in: $originDomain},
      destination: {_in: $destinationDomain}
    }
    order_by: {time_created: desc}
    limit: $limit
  ) {
    destination
    id
    msg_body
    msg_id
    nonce
    origin
    origin_mailbox
    origin_tx_id
    recipient
    sender
    time_created
  }
}
"""

_GRAPHQL_VARIABLE_NAMES = {
    ORIGIN_DOMAIN: "originDomain",
    SENDER_ADDRESS: "senderAddress",
    DESTINATION_DOMAIN: "destinationDomain",
    RECIPIENT_ADDRESS: "recipientAddress",
}


@dataclass(frozen=True)
class MessageRecord:
    """A dispatched message as reported by the explorer."""

    msg_id: str
    origin: int
    destination: int
    sender: str
    recipient: str
    nonce: int
    msg_body: str
    origin_mailbox: str
    origin_tx_id: int
    time_created: str
    id: int

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "MessageRecord":
        try:
            return cls(
                msg_id=str(row["msg_id"]),
                origin=int(row["origin"]),
                destination=int(row["destination"]),
                sender=str(row["sender"]),
                recipient=str(row["recipient"]),
                nonce=int(row["nonce"]),
                msg_body=str(row.get("msg_body") or ""),
                origin_mailbox=str(row.get("origin_mailbox") or ""),
                origin_tx_id=int(row.get("origin_tx_id") or 0),
                time_created=str(row.get("time_created") or ""),
                id=int(row.get("id") or 0),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Malformed message row in search response: {exc}") from exc

    def to_dict(self) -> Dict[str, Any]:
        return {
            "msg_id": self.msg_id,
            "origin": self.origin,
            "destination": self.destination,
            "sender": self.sender,
            "recipient": self.recipient,
            "nonce": self.nonce,
            "msg_body": self.msg_body,
            "origin_mailbox": self.origin_mailbox,
            "origin_tx_id": self.origin_tx_id,
            "time_created": self.time_created,
            "id": self.id,
        }


@dataclass(frozen=True)
class ElementSearchOutcome:
    """Result of the query issued for a single matching-list element."""

    index: int
    variables: Mapping[str, Any]
    messages: Sequence[MessageRecord] = ()
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def is_empty(self) -> bool:
        return self.ok and not self.messages


def to_graphql_variables(payload: Mapping[str, Any], *, limit: int) -> Dict[str, Any]:
    """Rename canonical payload keys to the query's variable names."""
    variables: Dict[str, Any] = {_GRAPHQL_VARIABLE_NAMES[key]: value for key, value in payload.items()}
    variables["limit"] = limit
    return variables


def send_graphql_request(
    *,
    endpoint: str,
    query: str,
    variables: Mapping[str, Any],
    timeout: int,
    post_fn: Callable[..., Any] = requests.post,
) -> Dict[str, Any]:
    """POST a GraphQL request and return its ``data`` member."""
    try:
        response = post_fn(endpoint, json={"query": query, "variables": dict(variables)}, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise ConnectionError(f"GraphQL request to {endpoint} failed: {exc}") from exc

    payload = response.json()
    if not isinstance(payload, Mapping):
        raise ValueError("GraphQL response must be a JSON object")
    errors = payload.get("errors")
    if errors:
        if not isinstance(errors, list):
            errors = [errors]
        messages = "; ".join(
            str(error.get("message", error)) if isinstance(error, Mapping) else str(error) for error in errors
        )
        raise ValueError(f"GraphQL endpoint returned errors: {messages}")
    data = payload.get("data")
    if not isinstance(data, Mapping):
        raise ValueError("GraphQL response missing data")
    return dict(data)


def search_element(
    *,
    config: CourierConfig,
    payload: Mapping[str, Any],
    post_fn: Callable[..., Any] = requests.post,
) -> List[MessageRecord]:
    """Run the search query for a single element payload."""
    data = send_graphql_request(
        endpoint=config.search.graphql_url,
        query=SEARCH_QUERY,
        variables=to_graphql_variables(payload, limit=config.search.limit),
        timeout=config.defaults.api_timeout,
        post_fn=post_fn,
    )
    rows = data.get("message") or []
    return [MessageRecord.from_row(row) for row in rows]


def perform_search(
    *,
    config: CourierConfig,
    matching_list: MatchingList,
    post_fn: Callable[..., Any] = requests.post,
) -> List[ElementSearchOutcome]:
    """Issue one independent query per element and collect every outcome.

    Queries run concurrently; a failed or empty element never prevents the
    others from being reported. Outcomes are ordered by element index.
    """
    payloads = build_query_variables(matching_list, unconstrained=config.search.unconstrained)
    if not payloads:
        LOGGER.warning("Matching list is unrestricted and unconstrained searches are skipped; no queries issued")
        return []

    LOGGER.info("Dispatching %s search queries to %s", len(payloads), config.search.graphql_url)
    outcomes: List[ElementSearchOutcome] = []
    workers = min(config.search.max_workers, len(payloads))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {
            pool.submit(search_element, config=config, payload=payload, post_fn=post_fn): (index, payload)
            for index, payload in enumerate(payloads)
        }
        for future in as_completed(futures):
            index, payload = futures[future]
            try:
                messages = future.result()
            except Exception as exc:  # one element failing must not drop the others
                LOGGER.warning("Search for element %s failed: %s", index, exc)
                outcomes.append(ElementSearchOutcome(index=index, variables=payload, error=str(exc)))
                continue
            LOGGER.info("Search for element %s returned %s messages", index, len(messages))
            outcomes.append(ElementSearchOutcome(index=index, variables=payload, messages=tuple(messages)))

    outcomes.sort(key=lambda outcome: outcome.index)
    return outcomes


def reportable_outcomes(
    outcomes: Sequence[ElementSearchOutcome], *, stop_on_empty: bool = False
) -> List[ElementSearchOutcome]:
    """Select the outcomes to report.

    With ``stop_on_empty`` reporting ends at the first element whose query
    returned no messages; that element is still included.
    """
    if not stop_on_empty:
        return list(outcomes)
    selected: List[ElementSearchOutcome] = []
    for outcome in outcomes:
        selected.append(outcome)
        if outcome.is_empty:
            break
    return selected


__all__ = [
    "ElementSearchOutcome",
    "MessageRecord",
    "SEARCH_QUERY",
    "perform_search",
    "reportable_outcomes",
    "search_element",
    "send_graphql_request",
    "to_graphql_variables",
]
