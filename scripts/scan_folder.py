#!/usr/bin/env python3
"""
OCR a folder of prescription photos -> parsed results -> JSONL.

Usage:
  python scripts/scan_folder.py photos/ --out scans.jsonl
  python scripts/scan_folder.py photos/ --language hin --dry-run

Notes:
- One JSON object per line, same shape as POST /api/scan plus "source".
- Images that fail OCR are written with an "error" key instead of being skipped.
"""

import argparse
import glob
import json
import os
import sys
from dataclasses import dataclass
from typing import List

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from rxscan.config import OCR_DEFAULT_LANGUAGE  # noqa: E402
from rxscan.ocr.engine import SUPPORTED_LANGUAGES, OcrError, TesseractEngine, process_image  # noqa: E402

IMAGE_EXTS = (".png", ".jpg", ".jpeg", ".webp", ".tif", ".tiff", ".bmp")

@dataclass
class ScanJob:
    path: str           # absolute path
    source: str         # path relative to the scanned folder
    size: int           # bytes

def find_images(folder: str) -> List[ScanJob]:
    jobs: List[ScanJob] = []
    for path in sorted(glob.glob(os.path.join(folder, "**", "*"), recursive=True)):
        if not path.lower().endswith(IMAGE_EXTS) or not os.path.isfile(path):
            continue
        jobs.append(ScanJob(
            path=os.path.abspath(path),
            source=os.path.relpath(path, folder),
            size=os.path.getsize(path),
        ))
    return jobs

def scan_one(engine: TesseractEngine, job: ScanJob, language: str) -> dict:
    with open(job.path, "rb") as f:
        data = f.read()
    try:
        result = process_image(engine, data, language)
    except OcrError as e:
        return {"source": job.source, "language": language, "error": str(e)}
    row = result.to_wire()
    row["source"] = job.source
    return row

def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("folder", help="Folder with prescription images (searched recursively)")
    ap.add_argument("--language", default=OCR_DEFAULT_LANGUAGE, choices=sorted(SUPPORTED_LANGUAGES))
    ap.add_argument("--out", default="-", help="Output JSONL path, '-' for stdout")
    ap.add_argument("--dry-run", action="store_true", help="List planned images & exit")
    args = ap.parse_args()

    jobs = find_images(args.folder)
    print(f"Found {len(jobs)} images under {args.folder}", file=sys.stderr)

    if args.dry_run:
        for j in jobs[:10]:
            print(f"- {j.source} ({j.size} bytes)", file=sys.stderr)
        if len(jobs) > 10:
            print(f"... {len(jobs)-10} more", file=sys.stderr)
        return

    engine = TesseractEngine()
    out = sys.stdout if args.out == "-" else open(args.out, "w", encoding="utf-8")
    failed = 0
    try:
        for j in jobs:
            row = scan_one(engine, j, args.language)
            failed += "error" in row
            out.write(json.dumps(row, ensure_ascii=False) + "\n")
    finally:
        if out is not sys.stdout:
            out.close()
    print(f"Scanned {len(jobs)} images ({failed} failed OCR)", file=sys.stderr)

if __name__ == "__main__":
    main()
