"""Shared fixtures for the dependency indexer tests."""

from pathlib import Path

import pytest

from depindex.indexer.java_analyzer import JavaAnalyzer
from depindex.storage.adapter import LocalFileStorage

EVENT_PUBLISHER = """package com.acme.events;

public interface EventPublisher {
    void publish(String topic, Object payload);
}
"""

MOVEMENT_SERVICE_IMPL = """package com.acme.movements;

import com.acme.events.EventPublisher;

public class MovementServiceImpl implements MovementService {
    private final EventPublisher eventPublisher;

    public MovementServiceImpl(EventPublisher eventPublisher) {
        this.eventPublisher = eventPublisher;
    }

    public void register(String movementId) {
        eventPublisher.publish("movements", movementId);
    }
}
"""

MOVEMENT_SERVICE = """package com.acme.movements;

public interface MovementService {
    void register(String movementId);
}
"""

RECONCILIATION_SERVICE = """package com.acme.reconciliation;

import com.acme.movements.MovementServiceImpl;

public class ReconciliationService {
    private MovementServiceImpl movementService;

    public void reconcile() {
        movementService.register("daily");
    }
}
"""


def write_files(root: Path, files: dict) -> Path:
    """Write ``{relative_path: content}`` under root and return root."""
    for relative_path, content in files.items():
        file_path = root / relative_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def java_analyzer():
    return JavaAnalyzer()


@pytest.fixture
def storage(tmp_path):
    return LocalFileStorage(str(tmp_path / "indexes"))


@pytest.fixture
def java_repo(tmp_path):
    """A small Java service with a two-hop dependency chain."""
    return write_files(
        tmp_path / "repo",
        {
            "src/main/java/com/acme/events/EventPublisher.java": EVENT_PUBLISHER,
            "src/main/java/com/acme/movements/MovementService.java": MOVEMENT_SERVICE,
            "src/main/java/com/acme/movements/MovementServiceImpl.java": MOVEMENT_SERVICE_IMPL,
            "src/main/java/com/acme/reconciliation/ReconciliationService.java": RECONCILIATION_SERVICE,
            "pom.xml": "<project></project>\n",
            "README.md": "# acme\n",
            "scripts/deploy.py": "print('deploy')\n",
            "target/classes/Stale.java": "public class Stale {}\n",
        },
    )
