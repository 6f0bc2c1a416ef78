#!/usr/bin/env python3
"""
Growth Simulator Validation Script
Runs randomized scenarios through the simulator and checks model invariants:
yield bounds, growth-time bounds, optimal-conditions baseline and
monotonic impact toward critical bounds.
"""
import sys
import os
import random
import json
import argparse
from typing import List, Dict, Any

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app.services.crop_profiles import CropId, lookup
from app.services.growth_simulation_rules import PARAMETER_KEYS, PARAM_WEIGHTS
from app.services.growth_simulator import (
    InputParameters,
    compute_impact,
    growth_simulator,
)

# Spread of random readings around the optimal range, as a multiple of the
# distance between optimal and critical bounds.
SPREAD = 1.3


def random_reading(limits) -> float:
    low = limits.effective_critical_min
    high = limits.effective_critical_max
    span_low = (limits.min - low) or (limits.max - limits.min) or 1.0
    span_high = (high - limits.max) or (limits.max - limits.min) or 1.0
    return random.uniform(limits.min - SPREAD * span_low, limits.max + SPREAD * span_high)


def optimal_parameters(crop_id: CropId) -> InputParameters:
    profile = lookup(crop_id)
    return InputParameters(crop_id=crop_id, **{key: profile.range_for(key).midpoint for key in PARAMETER_KEYS})


def check_monotonic(crop_id: CropId, steps: int = 20) -> List[str]:
    """Impact must never increase while moving from the optimum to a critical bound."""
    problems = []
    profile = lookup(crop_id)
    for key in PARAMETER_KEYS:
        limits = profile.range_for(key)
        weight = PARAM_WEIGHTS[key]
        for start, end in ((limits.min, limits.effective_critical_min), (limits.max, limits.effective_critical_max)):
            previous = 1.0
            for i in range(steps + 1):
                value = start + (end - start) * i / steps
                impact = compute_impact(value, limits, weight)
                if impact > previous + 1e-12:
                    problems.append(f"{crop_id.value}.{key}: impact rises at {value:.3f}")
                    break
                previous = impact
    return problems


def run_validation(num_tests: int = 500, seed: int = 42) -> Dict[str, Any]:
    random.seed(seed)

    results = []
    anomalies = []
    stats = {
        "total_tests": num_tests,
        "successful": 0,
        "failed": 0,
        "anomalies": 0,
        "viable": 0,
        "non_viable": 0,
        "yield_buckets": {"0-25": 0, "26-50": 0, "51-75": 0, "76-100": 0},
    }

    for crop_id in CropId:
        baseline = growth_simulator.simulate(optimal_parameters(crop_id))
        profile = lookup(crop_id)
        if (baseline.yield_percentage != 100 or not baseline.is_viable or baseline.issues
                or baseline.recommendations or baseline.growth_time != profile.growth_time.optimal):
            anomalies.append({"test_id": f"baseline-{crop_id.value}", "issue": "optimal conditions not scored as ideal"})
        for problem in check_monotonic(crop_id):
            anomalies.append({"test_id": f"monotonic-{crop_id.value}", "issue": problem})

    for i in range(num_tests):
        try:
            crop_id = random.choice(list(CropId))
            profile = lookup(crop_id)
            readings = {key: round(random_reading(profile.range_for(key)), 2) for key in PARAMETER_KEYS}
            result = growth_simulator.simulate(InputParameters(crop_id=crop_id, **readings))

            stats["successful"] += 1
            stats["viable" if result.is_viable else "non_viable"] += 1
            bucket = ("0-25" if result.yield_percentage <= 25 else
                      "26-50" if result.yield_percentage <= 50 else
                      "51-75" if result.yield_percentage <= 75 else "76-100")
            stats["yield_buckets"][bucket] += 1

            if not 0 <= result.yield_percentage <= 100:
                anomalies.append({"test_id": i, "issue": "yield out of bounds", "yield": result.yield_percentage})
            if not 1 <= result.growth_time <= profile.growth_time.max:
                anomalies.append({"test_id": i, "issue": "growth time out of bounds", "days": result.growth_time})
            if result.expected_grams > profile.max_yield:
                anomalies.append({"test_id": i, "issue": "expected grams above max yield", "grams": result.expected_grams})

            results.append({
                "test_id": i,
                "crop": crop_id.value,
                "readings": readings,
                **result.to_dict(),
            })
        except Exception as e:
            stats["failed"] += 1
            anomalies.append({"test_id": i, "issue": f"error: {e}"})

    stats["anomalies"] = len(anomalies)
    return {"stats": stats, "anomalies": anomalies, "results": results}


def generate_report(validation: Dict[str, Any]) -> str:
    stats = validation["stats"]
    anomalies = validation["anomalies"]
    results = validation["results"]

    report = []
    report.append("=" * 80)
    report.append("GROWTH SIMULATOR VALIDATION REPORT")
    report.append("=" * 80)
    report.append("")
    report.append(f"Scenarios: {stats['total_tests']}  OK: {stats['successful']}  Failed: {stats['failed']}")
    report.append(f"Viable: {stats['viable']}  Non-viable: {stats['non_viable']}")
    report.append("")

    report.append("## YIELD DISTRIBUTION")
    report.append("-" * 40)
    for bucket, count in stats["yield_buckets"].items():
        report.append(f"{bucket:>7}%: {count}")
    report.append("")

    if anomalies:
        report.append("## ANOMALIES")
        report.append("-" * 40)
        for i, anom in enumerate(anomalies[:15]):
            report.append(f"{i+1}. Test #{anom.get('test_id', '?')}: {anom.get('issue', 'Unknown')}")
        if len(anomalies) > 15:
            report.append(f"   ... and {len(anomalies) - 15} more")
        report.append("")

    report.append("## SAMPLE (5 scenarios)")
    report.append("-" * 40)
    for r in random.sample(results, min(5, len(results))):
        report.append(f"\nTest #{r['test_id']}: {r['crop']}")
        report.append(f"  Viable: {r['is_viable']}, Yield: {r['yield_percentage']}%, Days: {r['growth_time']}")
        for issue in r["issues"][:3]:
            report.append(f"  - {issue}")
    report.append("")

    report.append("## CONCLUSIONS")
    report.append("-" * 40)
    if not anomalies:
        report.append("✓ All invariants hold.")
    else:
        report.append(f"⚠️ {len(anomalies)} anomalies detected.")
    report.append("=" * 80)

    return "\n".join(report)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Validate the growth simulator with random scenarios")
    parser.add_argument("--tests", type=int, default=500)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--json", dest="json_path", default=None, help="Write raw results to this file")
    args = parser.parse_args()

    validation = run_validation(num_tests=args.tests, seed=args.seed)
    print(generate_report(validation))

    if args.json_path:
        with open(args.json_path, "w", encoding="utf-8") as f:
            json.dump(validation, f, indent=2, ensure_ascii=False)
        print(f"\nRaw results: {args.json_path}")

    sys.exit(1 if validation["anomalies"] else 0)
