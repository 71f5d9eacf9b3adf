"""
RiskRank — Scan Result Store.

Local SQLite persistence for prioritized scans. The engine never depends
on it; the CLI saves only when asked and reports failures as warnings.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from riskrank.models import Finding, ProjectContext, RankedFinding, Severity, Strategy
from riskrank.severity import normalize_severity

logger = logging.getLogger("riskrank.store")

REVIEW_STATUSES = ("Pending Review", "In Progress", "Resolved")

CREATE_SCANS = """
CREATE TABLE IF NOT EXISTS scans (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    project_name      TEXT NOT NULL,
    repository_url    TEXT NOT NULL DEFAULT 'local',
    branch            TEXT NOT NULL DEFAULT 'main',
    frameworks        TEXT NOT NULL DEFAULT '[]',
    strategy          TEXT NOT NULL,
    total_prioritized INTEGER NOT NULL,
    total_raw         INTEGER NOT NULL,
    metrics           TEXT NOT NULL DEFAULT '{}',
    status            TEXT NOT NULL DEFAULT 'Pending Review',
    top_findings      TEXT NOT NULL DEFAULT '[]',
    raw_findings      TEXT NOT NULL DEFAULT '[]',
    created_at        TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_scans_project ON scans(project_name);
"""


def threat_metrics(raw: Sequence[Finding]) -> dict[str, int]:
    """Count raw findings per normalized severity."""
    metrics = {s.value.lower(): 0 for s in Severity}
    for f in raw:
        metrics[normalize_severity(f.severity).value.lower()] += 1
    return metrics


class ScanStore:
    """SQLite-backed history of prioritized scans."""

    def __init__(self, db_path: str | Path):
        self._db_path = Path(db_path).expanduser()
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self._db_path))
            self._conn.row_factory = sqlite3.Row
            self._conn.executescript(CREATE_SCANS)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> ScanStore:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def save_scan(
        self,
        context: ProjectContext,
        ranked: Sequence[RankedFinding],
        raw: Sequence[Finding],
        strategy: Strategy,
        *,
        repository_url: str = "local",
        branch: str = "main",
    ) -> int:
        """Persist one scan. Returns the new scan id."""
        conn = self._get_conn()
        with conn:
            cur = conn.execute(
                "INSERT INTO scans (project_name, repository_url, branch, frameworks, "
                "strategy, total_prioritized, total_raw, metrics, top_findings, raw_findings) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    context.name or "Unknown Project",
                    repository_url,
                    branch,
                    json.dumps(context.frameworks),
                    strategy.value,
                    len(ranked),
                    len(raw),
                    json.dumps(threat_metrics(raw)),
                    json.dumps([r.to_dict() for r in ranked]),
                    json.dumps([f.to_dict() for f in raw]),
                ),
            )
        scan_id = cur.lastrowid
        logger.info(
            "Saved scan #%d for %s (%d prioritized / %d raw)",
            scan_id, context.name, len(ranked), len(raw),
        )
        return scan_id

    def list_scans(self, project: str | None = None, limit: int = 20) -> list[dict[str, Any]]:
        """Most recent scans first, without the finding payloads."""
        conn = self._get_conn()
        query = (
            "SELECT id, project_name, strategy, total_prioritized, total_raw, "
            "metrics, status, created_at FROM scans"
        )
        params: list[Any] = []
        if project:
            query += " WHERE project_name = ?"
            params.append(project)
        query += " ORDER BY id DESC LIMIT ?"
        params.append(limit)

        results = []
        for row in conn.execute(query, params).fetchall():
            item = dict(row)
            item["metrics"] = json.loads(item["metrics"] or "{}")
            results.append(item)
        return results

    def get_scan(self, scan_id: int) -> dict[str, Any] | None:
        """Full scan record including findings, or None."""
        row = self._get_conn().execute(
            "SELECT * FROM scans WHERE id = ?", (scan_id,)
        ).fetchone()
        if row is None:
            return None
        item = dict(row)
        for key in ("frameworks", "metrics", "top_findings", "raw_findings"):
            item[key] = json.loads(item[key] or "null")
        return item

    def set_status(self, scan_id: int, status: str) -> bool:
        """Update the review status. Returns False if the scan does not exist."""
        if status not in REVIEW_STATUSES:
            raise ValueError(
                f"Invalid status {status!r}. Supported: {', '.join(REVIEW_STATUSES)}"
            )
        conn = self._get_conn()
        with conn:
            cur = conn.execute(
                "UPDATE scans SET status = ? WHERE id = ?", (status, scan_id)
            )
        return cur.rowcount > 0
