"""
Robust Equilibrium Example
==========================
Two rectangular feet, random CoM positions, every algorithm compared.

Run:
    python robust_equilibrium_demo.py
    python robust_equilibrium_demo.py --samples 200 --solver osqp
    python robust_equilibrium_demo.py --contacts contacts.yaml --record
"""

import argparse
import time
import numpy as np

from robust_equilibrium import (
    EquilibriumAlgorithm,
    LPStatus,
    QueryRecorder,
    StaticEquilibrium,
    configure_logging,
    generate_rectangle_contacts,
    load_contact_set,
    normalize_solver_type,
    uniform,
)


def two_feet_contacts(rng: np.random.Generator):
    """Contacts of two 0.2 x 0.1 m feet placed side by side, slightly tilted."""
    points, normals = [], []
    for y in (-0.1, 0.1):
        rpy = uniform([-0.1, -0.1, -0.3], [0.1, 0.1, 0.3], rng)
        p, n = generate_rectangle_contacts(0.1, 0.05, [0.0, y, 0.0], rpy)
        points.append(p)
        normals.append(n)
    return np.vstack(points), np.vstack(normals)


def main():
    parser = argparse.ArgumentParser(description="Robust equilibrium demo")
    parser.add_argument("--samples", type=int, default=50,
                       help="Number of random CoM positions")
    parser.add_argument("--solver", type=str, default="highs",
                       help="LP backend (highs, osqp)")
    parser.add_argument("--mass", type=float, default=54.0,
                       help="Body mass (kg)")
    parser.add_argument("--contacts", type=str, default=None,
                       help="YAML/JSON contact set (default: two random feet)")
    parser.add_argument("--record", action="store_true",
                       help="Record queries to runs/<timestamp>")
    parser.add_argument("--seed", type=int, default=1337)
    args = parser.parse_args()

    configure_logging()
    rng = np.random.default_rng(args.seed)

    if args.contacts:
        contact_set = load_contact_set(args.contacts)
        points, normals, mu = contact_set.points, contact_set.normals, contact_set.friction_coefficient
    else:
        points, normals = two_feet_contacts(rng)
        mu = 0.5

    print("=" * 70)
    print(f"ROBUST EQUILIBRIUM DEMO - {points.shape[0]} contacts, solver={args.solver}")
    print("=" * 70)

    recorder = QueryRecorder() if args.record else None
    solver_type = normalize_solver_type(args.solver)

    engines = {}
    for algorithm in (EquilibriumAlgorithm.LP, EquilibriumAlgorithm.LP2,
                      EquilibriumAlgorithm.DLP, EquilibriumAlgorithm.PP):
        eq = StaticEquilibrium(f"demo_{algorithm.value}", args.mass,
                               generators_per_contact=4, solver_type=solver_type,
                               recorder=recorder)
        t_start = time.perf_counter()
        if not eq.set_new_contacts(points, normals, mu, algorithm):
            print(f"  {algorithm.value}: contact set rejected")
            continue
        setup_ms = (time.perf_counter() - t_start) * 1000.0
        print(f"  {algorithm.value:4s} set_new_contacts: {setup_ms:.2f} ms")
        engines[algorithm] = eq

    coms = np.array([uniform([-0.15, -0.2, 0.5], [0.15, 0.2, 1.0], rng)
                     for _ in range(max(1, args.samples))])

    mismatches = 0
    in_equilibrium = 0
    for com in coms:
        values = {}
        for algorithm, eq in engines.items():
            if algorithm == EquilibriumAlgorithm.PP:
                continue  # PP only answers equilibrium checks
            status, robustness = eq.compute_equilibrium_robustness(com)
            values[algorithm] = robustness if status == LPStatus.OPTIMAL else None

        if EquilibriumAlgorithm.PP in engines:
            status, equilibrium = engines[EquilibriumAlgorithm.PP].check_robust_equilibrium(com)
            in_equilibrium += int(equilibrium)
            lp_value = values.get(EquilibriumAlgorithm.LP)
            if lp_value is not None and status == LPStatus.OPTIMAL and equilibrium != (lp_value >= 0.0):
                mismatches += 1
                print(f"  Mismatch at com={com}: PP={equilibrium}, LP robustness={lp_value:.4f}")

    print(f"\nCoM samples in equilibrium: {in_equilibrium}/{len(coms)}")
    print(f"PP/LP disagreements: {mismatches}")

    if EquilibriumAlgorithm.LP in engines:
        eq = engines[EquilibriumAlgorithm.LP]
        status, com = eq.find_extremum_over_line([1.0, 0.0, 0.0], [0.0, 0.0, 0.8], 0.0)
        print(f"Extremum along +x from [0, 0, 0.8]: status={status.value}, com={com}")

    if recorder is not None:
        recorder.close()
        print(f"\nQueries saved to: {recorder.run_dir}")
    print()


if __name__ == "__main__":
    main()
