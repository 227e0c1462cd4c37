"""
Persisted label state: the LabelStore interface plus in-memory and JSON-file implementations.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Protocol, runtime_checkable

from identigraph.errors import LabelStoreWriteFailure

logger = logging.getLogger(__name__)


@runtime_checkable
class LabelStore(Protocol):
    """Per-node label persistence. apply_delta must be atomic per node."""

    def read_labels(self, node_id: str) -> frozenset[str]:
        ...

    def apply_delta(
        self,
        node_id: str,
        add: frozenset[str],
        remove: frozenset[str],
    ) -> bool:
        ...


class InMemoryLabelStore:
    """Thread-safe dict-backed store. Applying a delta replaces the node's set in one step."""

    def __init__(self, initial: Mapping[str, Iterable[str]] | None = None) -> None:
        self._lock = threading.Lock()
        self._labels: dict[str, frozenset[str]] = {
            node_id: frozenset(labels) for node_id, labels in (initial or {}).items()
        }

    def read_labels(self, node_id: str) -> frozenset[str]:
        with self._lock:
            return self._labels.get(node_id, frozenset())

    def _merged(self, node_id: str, add: frozenset[str], remove: frozenset[str]) -> frozenset[str]:
        return (self._labels.get(node_id, frozenset()) - remove) | add

    def apply_delta(
        self,
        node_id: str,
        add: frozenset[str],
        remove: frozenset[str],
    ) -> bool:
        """(current - remove) | add. Re-applying the same delta is a no-op."""
        with self._lock:
            merged = self._merged(node_id, frozenset(add), frozenset(remove))
            self._commit(node_id, merged)
            return True

    def _commit(self, node_id: str, labels: frozenset[str]) -> None:
        if labels:
            self._labels[node_id] = labels
        else:
            self._labels.pop(node_id, None)

    def all_labels(self) -> dict[str, frozenset[str]]:
        """Copy of the full label state, keyed by node id (nodes with no labels omitted)."""
        with self._lock:
            return dict(sorted(self._labels.items()))


class JsonFileLabelStore(InMemoryLabelStore):
    """
    Label state persisted as a JSON object {node_id: [labels]}.
    Each delta rewrites the file through a temp file and os.replace, so a
    failed write leaves both the file and the in-memory state unchanged.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        initial: dict[str, list[str]] = {}
        if self.path.exists():
            text = self.path.read_text(encoding="utf-8")
            if text.strip():
                data = json.loads(text)
                if not isinstance(data, dict):
                    raise ValueError(
                        f"Label file {self.path}: expected object, got {type(data).__name__}"
                    )
                for nid, labels in data.items():
                    if not isinstance(labels, list) or not all(isinstance(label, str) for label in labels):
                        raise ValueError(
                            f"Label file {self.path}: labels for node {nid} must be a list of strings"
                        )
                initial = data
        super().__init__(initial)
        logger.debug("Loaded labels for %d nodes from %s", len(self._labels), self.path)

    def apply_delta(
        self,
        node_id: str,
        add: frozenset[str],
        remove: frozenset[str],
    ) -> bool:
        with self._lock:
            merged = self._merged(node_id, frozenset(add), frozenset(remove))
            state = dict(self._labels)
            if merged:
                state[node_id] = merged
            else:
                state.pop(node_id, None)
            try:
                self._write(state)
            except OSError as e:
                raise LabelStoreWriteFailure(node_id, str(e)) from e
            self._commit(node_id, merged)
            return True

    def _write(self, state: dict[str, frozenset[str]]) -> None:
        payload = json.dumps(
            {nid: sorted(labels) for nid, labels in sorted(state.items())},
            indent=2,
        )
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp, self.path)
        except OSError:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
