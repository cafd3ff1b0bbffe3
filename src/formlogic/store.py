"""
Persistence / analytics collaborator contract.

The visibility engine never stores anything. Whatever keeps forms and
responses has to offer at least:

    save(schema)          -> form id
    load(form_id)         -> FormSchema
    submit(form_id, ans)  -> SubmissionReceipt
    snapshot(form_id)     -> AnalyticsSnapshot
    subscribe / unsubscribe  push channel of fresh snapshots

InMemoryFormStore is a reference implementation used by tests and the CLI.
It does NOT aggregate analytics itself: snapshot contents come from an
injected snapshot_builder, defaulting to a count-only snapshot.
"""

from __future__ import annotations

import copy
import logging
import queue
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from formlogic.answers import check_answers
from formlogic.model import AnswerSet, FormSchema
from formlogic.validator import ensure_valid
from formlogic.visibility import resolve

logger = logging.getLogger(__name__)


class FormStoreError(Exception):
    """Base class for collaborator-side failures."""
    pass


class FormNotFound(FormStoreError):
    pass


class FormNotPublished(FormStoreError):
    pass


class AnswerViolation(FormStoreError):
    """Raised when submitted answers do not fit their fields."""

    def __init__(self, reasons: Sequence[str]):
        self.reasons = list(reasons)
        super().__init__("; ".join(self.reasons))


@dataclass
class Trends:
    """Form-level summaries carried by a snapshot."""

    avg_rating: float = 0.0
    most_common: Dict[str, Any] = field(default_factory=dict)
    skipped: Dict[str, int] = field(default_factory=dict)
    most_skipped: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class AnalyticsSnapshot:
    """
    Aggregated results of a form at one point in time.

    Properties:
        form_id: Form the snapshot belongs to
        count: Number of recorded responses
        fields:
            Per field id, a kind-appropriate summary, e.g.
            {"kind": "rating", "distribution": {1: 0, ...}, "average": 3.5}
        trends: Optional form-level Trends
    """

    form_id: str
    count: int = 0
    fields: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    trends: Optional[Trends] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SubmissionReceipt:
    response_id: str
    form_id: str
    created: int
    answers: AnswerSet


SnapshotBuilder = Callable[[FormSchema, List[AnswerSet]], AnalyticsSnapshot]


def count_only_snapshot(schema: FormSchema, responses: List[AnswerSet]) -> AnalyticsSnapshot:
    return AnalyticsSnapshot(form_id=schema.id, count=len(responses))


class FormStore(ABC):
    """What the authoring and response-collection surfaces rely on."""

    @abstractmethod
    def save(self, schema: FormSchema) -> str:
        ...

    @abstractmethod
    def load(self, form_id: str) -> FormSchema:
        ...

    @abstractmethod
    def submit(self, form_id: str, answers: AnswerSet) -> SubmissionReceipt:
        ...

    @abstractmethod
    def snapshot(self, form_id: str) -> AnalyticsSnapshot:
        ...

    @abstractmethod
    def subscribe(self, form_id: str) -> "queue.Queue[Dict[str, Any]]":
        ...

    @abstractmethod
    def unsubscribe(self, form_id: str, subscriber: "queue.Queue[Dict[str, Any]]") -> None:
        ...


class SnapshotHub:
    """
    Per-form fan-out of push messages.

    Each subscriber gets a bounded queue. A subscriber whose queue is full
    misses the message; the publisher never blocks.
    """

    def __init__(self, queue_size: int = 8):
        self.queue_size = queue_size
        self._subs: Dict[str, List["queue.Queue[Dict[str, Any]]"]] = {}

    def subscribe(self, form_id: str) -> "queue.Queue[Dict[str, Any]]":
        sub: "queue.Queue[Dict[str, Any]]" = queue.Queue(maxsize=self.queue_size)
        self._subs.setdefault(form_id, []).append(sub)
        return sub

    def unsubscribe(self, form_id: str, subscriber: "queue.Queue[Dict[str, Any]]") -> None:
        subs = self._subs.get(form_id)
        if not subs or subscriber not in subs:
            return
        subs.remove(subscriber)
        if not subs:
            del self._subs[form_id]

    def subscriber_count(self, form_id: str) -> int:
        return len(self._subs.get(form_id, []))

    def broadcast(self, form_id: str, message: Dict[str, Any]) -> int:
        """Deliver ``message`` to every subscriber of ``form_id``; return how many got it."""
        delivered = 0
        for sub in self._subs.get(form_id, []):
            try:
                sub.put_nowait(message)
                delivered += 1
            except queue.Full:
                logger.warning("Subscriber queue full for form %s, dropping message", form_id)
        return delivered


class InMemoryFormStore(FormStore):
    """
    Dict-backed FormStore.

    Saving runs the schema validator first and refuses invalid schemas.
    Submitting re-prunes answers against the stored schema, so a client
    that sends stale answers for hidden fields cannot get them recorded.
    """

    def __init__(self, snapshot_builder: Optional[SnapshotBuilder] = None,
                 hub: Optional[SnapshotHub] = None):
        self._forms: Dict[str, FormSchema] = {}
        self._responses: Dict[str, List[AnswerSet]] = {}
        self._snapshot_builder = snapshot_builder or count_only_snapshot
        self.hub = hub or SnapshotHub()

    def save(self, schema: FormSchema) -> str:
        ensure_valid(schema)
        stored = copy.deepcopy(schema)
        if not stored.id:
            stored.id = str(uuid.uuid4())
        self._forms[stored.id] = stored
        logger.info("Saved form %s (%s, %d fields)", stored.id, stored.status.value, len(stored.fields))
        return stored.id

    def load(self, form_id: str) -> FormSchema:
        try:
            return copy.deepcopy(self._forms[form_id])
        except KeyError:
            raise FormNotFound(f"form not found: {form_id}") from None

    def responses(self, form_id: str) -> List[AnswerSet]:
        return copy.deepcopy(self._responses.get(form_id, []))

    def submit(self, form_id: str, answers: AnswerSet) -> SubmissionReceipt:
        schema = self.load(form_id)
        if not schema.is_published:
            raise FormNotPublished(f"form not published: {form_id}")

        resolution = resolve(schema.fields, answers or {})
        problems = check_answers(schema.fields, resolution.answers, resolution.visibility)
        if problems:
            raise AnswerViolation(problems)

        receipt = SubmissionReceipt(
            response_id=str(uuid.uuid4()),
            form_id=form_id,
            created=int(time.time()),
            answers=copy.deepcopy(resolution.answers),
        )
        self._responses.setdefault(form_id, []).append(receipt.answers)
        logger.info("Recorded response %s for form %s", receipt.response_id, form_id)

        if self.hub.subscriber_count(form_id):
            self.hub.broadcast(form_id, {
                "type": "response:new",
                "form_id": form_id,
                "created": receipt.created,
                "analytics": self.snapshot(form_id).to_dict(),
            })
        return receipt

    def snapshot(self, form_id: str) -> AnalyticsSnapshot:
        schema = self.load(form_id)
        return self._snapshot_builder(schema, self.responses(form_id))

    def subscribe(self, form_id: str) -> "queue.Queue[Dict[str, Any]]":
        return self.hub.subscribe(form_id)

    def unsubscribe(self, form_id: str, subscriber: "queue.Queue[Dict[str, Any]]") -> None:
        self.hub.unsubscribe(form_id, subscriber)
