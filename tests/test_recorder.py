"""
Query Recorder Tests
====================
"""

import csv
import json

import numpy as np

from robust_equilibrium import (
    EngineConfig,
    EquilibriumAlgorithm,
    LPStatus,
    QueryRecorder,
    StaticEquilibrium,
)
from robust_equilibrium.solvers import read_lp_from_file

from conftest import MASS, MU


def _events(path):
    with open(path) as f:
        return [json.loads(line) for line in f if line.strip()]


def test_queries_written_to_jsonl_and_csv(tmp_path, flat_foot):
    with QueryRecorder(str(tmp_path / "run")) as recorder:
        eq = StaticEquilibrium("rec", MASS, recorder=recorder)
        eq.set_new_contacts(*flat_foot, MU, EquilibriumAlgorithm.LP)
        eq.compute_equilibrium_robustness(np.array([0.0, 0.0, 0.8]))
    assert recorder.closed

    events = _events(recorder.events_jsonl_path)
    queries = [e for e in events if e["event_type"] == "query"]
    lps = [e for e in events if e["event_type"] == "lp"]
    assert [q["operation"] for q in queries] == ["set_new_contacts", "compute_equilibrium_robustness"]
    assert queries[1]["algorithm"] == "LP"
    assert queries[1]["status"] == "optimal"
    assert queries[1]["data"]["com"] == [0.0, 0.0, 0.8]
    assert len(lps) == 1 and lps[0]["tag"] == "robustness_lp"
    assert "problem_file" not in lps[0]

    with open(recorder.queries_csv_path, newline="") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 2
    assert rows[1]["operation"] == "compute_equilibrium_robustness"
    assert float(json.loads(rows[1]["value"])) > 0.0


def test_lp_dumps(tmp_path, flat_foot):
    recorder = QueryRecorder(str(tmp_path / "dump"), dump_lps=True)
    eq = StaticEquilibrium("dump", MASS, recorder=recorder)
    eq.set_new_contacts(*flat_foot, MU, EquilibriumAlgorithm.LP2)
    eq.compute_equilibrium_robustness([0.0, 0.0, 0.8])
    recorder.close()

    lp_event = [e for e in _events(recorder.events_jsonl_path) if e["event_type"] == "lp"][0]
    c, lb, ub, A, Alb, Aub = read_lp_from_file(lp_event["problem_file"])
    assert A.shape == (6, 17)
    assert c.shape == (17,)
    with np.load(lp_event["solution_file"]) as solution:
        assert solution["x"].shape == (17,)


def test_failed_contact_set_recorded(tmp_path, flat_foot):
    with QueryRecorder(str(tmp_path / "fail")) as recorder:
        eq = StaticEquilibrium("fail", MASS, recorder=recorder)
        points, normals = flat_foot
        assert not eq.set_new_contacts(points, 3.0 * normals, MU, EquilibriumAlgorithm.LP)

    event = _events(recorder.events_jsonl_path)[0]
    assert event["status"] == "error"
    assert "norm 1" in event["data"]["error"]


def test_recording_after_close_is_ignored(tmp_path):
    recorder = QueryRecorder(str(tmp_path / "closed"))
    recorder.close()
    recorder.record_query("compute_equilibrium_robustness", None, LPStatus.OPTIMAL, {})
    assert recorder.query_count == 0


def test_engine_config_opens_recorder(tmp_path):
    config = EngineConfig(record_dir=str(tmp_path / "cfg"), dump_lps=True)
    eq = StaticEquilibrium.from_config(config)
    assert isinstance(eq.recorder, QueryRecorder)
    assert eq.recorder.dump_lps
    eq.recorder.close()


def test_flush_cadence(tmp_path):
    """Both files reach the disk every flush_every events, before close()."""
    recorder = QueryRecorder(str(tmp_path / "flush"), flush_every=2)
    recorder.record_query("compute_equilibrium_robustness", "LP", LPStatus.OPTIMAL,
                          {"robustness": 1.0})
    recorder.record_query("compute_equilibrium_robustness", "LP", LPStatus.OPTIMAL,
                          {"robustness": 2.0})

    assert len(_events(recorder.events_jsonl_path)) == 2
    with open(recorder.queries_csv_path, newline="") as f:
        rows = list(csv.DictReader(f))
    assert [float(r["value"]) for r in rows] == [1.0, 2.0]

    recorder.record_query("check_robust_equilibrium", "PP", LPStatus.OPTIMAL,
                          {"equilibrium": True})
    recorder.close()
    assert len(_events(recorder.events_jsonl_path)) == 3
