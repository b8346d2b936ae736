#!/usr/bin/env python3
"""
Offline extraction evaluation runner:
- Loads YAML cases under eval/cases/*.yaml
- Posts each case's OCR text to /api/parse
- Scores medication names and patient fields, writes eval/report.json

Usage:
  python eval/run_eval.py --base-url http://localhost:8000
  python eval/run_eval.py --fast    # only the first N cases
"""

import argparse
import glob
import json
import os
from typing import Any, Dict, List

import httpx
import yaml

DEFAULT_BASE_URL = "http://localhost:8000"
CASES_GLOB = os.path.join(os.path.dirname(__file__), "cases", "*.yaml")
TIMEOUT = 8.0
PATIENT_FIELDS = ("name", "age", "date")

def load_cases(limit: int | None = None) -> List[Dict[str, Any]]:
    paths = sorted(glob.glob(CASES_GLOB))
    cases: List[Dict[str, Any]] = []
    for p in paths:
        with open(p, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or []
            if isinstance(data, list):
                cases.extend(data)
    if limit is not None:
        cases = cases[:limit]
    return cases

def post_parse(client: httpx.Client, base_url: str, text: str, language: str) -> Dict[str, Any]:
    url = f"{base_url}/api/parse"
    r = client.post(url, json={"text": text, "language": language}, timeout=TIMEOUT)
    r.raise_for_status()
    return r.json()

def eval_case(client: httpx.Client, base_url: str, case: Dict[str, Any]) -> Dict[str, Any]:
    got = post_parse(client, base_url, case["text"], case.get("language", "eng"))

    got_meds = [m["name"].lower() for m in got.get("medications") or []]
    expect_meds = [m.lower() for m in case.get("expect_medications", [])]
    hits = sum(1 for m in expect_meds if m in got_meds)

    expect_patient = case.get("expect_patient") or {}
    got_patient = got.get("patientInfo") or {}
    field_checks = {f: got_patient.get(f) == str(expect_patient[f]) for f in PATIENT_FIELDS if f in expect_patient}

    return {
        "id": case["id"],
        "expect_medications": expect_meds,
        "got_medications": got_meds,
        "med_hits": hits,
        "med_expected": len(expect_meds),
        "med_found": len(got_meds),
        "patient_checks": field_checks,
        "raw": got,  # keep for debugging
    }

def summarize(results: List[Dict[str, Any]]) -> Dict[str, Any]:
    n = len(results)
    hits = sum(r["med_hits"] for r in results)
    expected = sum(r["med_expected"] for r in results)
    found = sum(r["med_found"] for r in results)
    checks = [ok for r in results for ok in r["patient_checks"].values()]

    return {
        "total_cases": n,
        "medication_recall": round(hits / max(1, expected), 3),
        "medication_precision": round(hits / max(1, found), 3),
        "patient_field_accuracy": round(sum(checks) / max(1, len(checks)), 3),
        "errors": sum(1 for r in results if "error" in r),
    }

def print_table(results: List[Dict[str, Any]], summary: Dict[str, Any]) -> None:
    # Minimal pretty table without extra deps
    headers = ["id", "meds", "found", "hits", "patient✓"]
    rows = []
    for r in results:
        checks = r["patient_checks"]
        rows.append([
            r["id"],
            r["med_expected"],
            r["med_found"],
            r["med_hits"],
            "-" if not checks else f"{sum(checks.values())}/{len(checks)}",
        ])
    colw = [max(len(str(x)) for x in col) for col in zip(*([headers] + rows))]
    def fmt_row(row): return "  ".join(str(x).ljust(w) for x, w in zip(row, colw))

    print(fmt_row(headers))
    print("-" * (sum(colw) + 2 * (len(headers) - 1)))
    for row in rows:
        print(fmt_row(row))
    print("\nSummary:")
    for k, v in summary.items():
        print(f"- {k}: {v}")

def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--base-url", default=DEFAULT_BASE_URL)
    ap.add_argument("--fast", action="store_true", help="Run only the first 5 cases")
    ap.add_argument("--out", default=os.path.join(os.path.dirname(__file__), "report.json"))
    ap.add_argument("--min-recall", type=float, default=0.0, help="Exit non-zero below this medication recall")
    args = ap.parse_args()

    cases = load_cases(limit=5 if args.fast else None)
    if not cases:
        print("No cases found under eval/cases/*.yaml")
        return

    results: List[Dict[str, Any]] = []
    with httpx.Client() as client:
        for c in cases:
            try:
                results.append(eval_case(client, args.base_url, c))
            except httpx.HTTPError as e:
                results.append({
                    "id": c["id"],
                    "error": str(e),
                    "expect_medications": c.get("expect_medications", []),
                    "got_medications": [],
                    "med_hits": 0,
                    "med_expected": len(c.get("expect_medications", [])),
                    "med_found": 0,
                    "patient_checks": {},
                    "raw": {},
                })

    summary = summarize(results)

    # Write JSON report for CI / diffing
    os.makedirs(os.path.dirname(args.out) or ".", exist_ok=True)
    with open(args.out, "w", encoding="utf-8") as f:
        json.dump({"summary": summary, "results": results}, f, ensure_ascii=False, indent=2)

    print_table(results, summary)

    if summary["medication_recall"] < args.min_recall:
        print(f"\nMedication recall below target ({summary['medication_recall']} < {args.min_recall})")
        raise SystemExit(1)

if __name__ == "__main__":
    main()
