"""
Query Recorder: Query and LP logging
====================================
Records equilibrium queries to JSONL and CSV, and optionally dumps every
LP (problem + solution) as .npz archives for offline debugging.
"""

import csv
import json
import logging
import os
from datetime import datetime
from enum import Enum
from typing import Any, Dict

import numpy as np

from .solvers import LPSolution, LPStatus, write_lp_to_file


logger = logging.getLogger(__name__)

CSV_FIELDS = ['query_id', 'time', 'operation', 'algorithm', 'status', 'value']


def _to_native(value: Any) -> Any:
    """Convert numpy types to native Python types for JSON."""
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        return float(value)
    if isinstance(value, (np.bool_,)):
        return bool(value)
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, (list, tuple)):
        return [_to_native(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    return value


class QueryRecorder:
    """Recorder for equilibrium queries."""

    def __init__(self, run_dir: str = None, dump_lps: bool = False, flush_every: int = 50):
        """
        Initialize recorder with run directory.

        Args:
            run_dir: Directory for this run (default: runs/<timestamp>)
            dump_lps: Also write every solved LP to run_dir
            flush_every: Flush the JSONL file every N events
        """
        if run_dir is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            run_dir = os.path.join("runs", timestamp)

        self.run_dir = run_dir
        os.makedirs(self.run_dir, exist_ok=True)

        self.events_jsonl_path = os.path.join(self.run_dir, "events.jsonl")
        self.queries_csv_path = os.path.join(self.run_dir, "queries.csv")
        self.dump_lps = dump_lps

        # Keep the handles open, queries can be issued in tight loops
        self._events_fh = open(self.events_jsonl_path, 'a')
        self._events_since_flush = 0
        self._flush_every = flush_every

        self._csv_fh = open(self.queries_csv_path, 'w', newline='')
        self._csv_writer = csv.DictWriter(self._csv_fh, fieldnames=CSV_FIELDS)
        self._csv_writer.writeheader()

        self.query_count = 0
        self.lp_count = 0

        logger.info(f"[RECORDER] Recording to: {self.run_dir}")

    @property
    def closed(self) -> bool:
        return self._events_fh is None

    def close(self):
        """Flush and close the open file handles."""
        if self._events_fh is not None:
            self._events_fh.close()
            self._events_fh = None
        if self._csv_fh is not None:
            self._csv_fh.close()
            self._csv_fh = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def record_query(self, operation: str, algorithm, status: LPStatus, data: Dict[str, Any]):
        """Record one engine operation."""
        if self.closed:
            return
        self.query_count += 1
        now = datetime.now().isoformat()
        data = {key: _to_native(value) for key, value in data.items()}

        # CSV row first, so a flush triggered by the event covers both files
        value = next((data[k] for k in ('robustness', 'equilibrium', 'com') if k in data), None)
        self._csv_writer.writerow({
            'query_id': self.query_count,
            'time': now,
            'operation': operation,
            'algorithm': _to_native(algorithm),
            'status': status.value,
            'value': json.dumps(value),
        })

        self._write_event({
            'query_id': self.query_count,
            'event_type': 'query',
            'time': now,
            'operation': operation,
            'algorithm': _to_native(algorithm),
            'status': status.value,
            'data': data,
        })

    def record_lp(self, tag: str, problem, solution: LPSolution):
        """
        Record one LP solve; writes the problem and solution when dump_lps is set.

        Args:
            tag: Short name of the formulation (e.g. 'robustness_lp')
            problem: (c, lb, ub, A, Alb, Aub)
            solution: LPSolution returned by the backend
        """
        if self.closed:
            return
        self.lp_count += 1
        event = {
            'event_type': 'lp',
            'time': datetime.now().isoformat(),
            'tag': tag,
            'lp_id': self.lp_count,
            'status': solution.status.value,
            'objective': _to_native(solution.objective),
            'solve_time_ms': solution.solve_time_ms,
        }
        if self.dump_lps:
            base = os.path.join(self.run_dir, f"lp_{tag}_{self.lp_count:05d}")
            event['problem_file'] = str(write_lp_to_file(base + ".npz", *problem))
            solution_file = base + "_solution.npz"
            x = solution.x if solution.x is not None else np.zeros(0)
            np.savez_compressed(solution_file, x=x, objective=solution.objective)
            event['solution_file'] = solution_file
        self._write_event(event)

    def flush(self):
        """Push buffered events and CSV rows to disk."""
        if self.closed:
            return
        self._events_fh.flush()
        self._csv_fh.flush()
        self._events_since_flush = 0

    def _write_event(self, event: dict):
        self._events_fh.write(json.dumps(event) + '\n')
        self._events_since_flush += 1
        if self._events_since_flush >= self._flush_every:
            self.flush()
