#!/usr/bin/env python3
"""Performance benchmarking script for the LineLens analyzer.

Runs find_related_lines on every line of each file and reports the time per
line. Files default to the test fixture plus a synthetic file made of many
copies of it.
"""

import sys
import time
from pathlib import Path

from linelens.analyzer.code_analysis import CodeAnalysisService
from linelens.analyzer.document import TextDocument, split_lines

SAMPLE = Path(__file__).parent / "tests" / "fixtures" / "sample.ts"

# Selections must feel instant in an editor
PER_LINE_THRESHOLD = 0.05  # seconds


def benchmark_document(document, name):
    """Analyze every line of a document and time it."""
    print(f"\n{'='*70}")
    print(f"Benchmarking: {name}")
    print(f"Lines: {document.line_count}")
    print(f"{'='*70}\n")

    service = CodeAnalysisService()
    related_total = 0
    slowest = 0.0

    start = time.time()
    for line in range(document.line_count):
        line_start = time.time()
        related_total += len(service.find_related_lines(document, line))
        slowest = max(slowest, time.time() - line_start)
    elapsed = time.time() - start

    per_line = (elapsed / document.line_count) if document.line_count > 0 else 0

    print(f"Total Time: {elapsed:.2f}s")
    print(f"Slowest line: {slowest:.4f}s")

    return {
        'name': name,
        'lines': document.line_count,
        'related': related_total,
        'total_time': elapsed,
        'per_line': per_line,
        'slowest': slowest,
    }


def synthetic_document(copies):
    lines = split_lines(SAMPLE.read_text(encoding='utf-8'))
    return TextDocument.from_lines(lines * copies, language_id='typescript',
                                   uri=f"synthetic://sample-x{copies}.ts")


if __name__ == "__main__":
    if len(sys.argv) > 1:
        benchmarks = [(TextDocument.from_file(path), Path(path).name) for path in sys.argv[1:]]
    else:
        benchmarks = [
            (TextDocument.from_file(SAMPLE), "sample.ts"),
            (synthetic_document(25), "sample.ts x25"),
        ]

    results = [benchmark_document(document, name) for document, name in benchmarks]

    # Summary table
    print("\n" + "="*100)
    print("PERFORMANCE REGRESSION SUMMARY")
    print("="*100)
    print(f"{'File':<20} {'Lines':<8} {'Related':<10} {'Total Time':<12} {'Per line':<12} {'Slowest':<12} {'Status':<10}")
    print("-"*100)

    for r in results:
        status = "✅ PASS" if r['slowest'] < PER_LINE_THRESHOLD else "⚠️ SLOW"
        print(f"{r['name']:<20} {r['lines']:<8} {r['related']:<10} {r['total_time']:<12.2f} "
              f"{r['per_line']:<12.4f} {r['slowest']:<12.4f} {status:<10}")

    print("-"*100)
    print(f"\nCRITICAL THRESHOLD: every line must be analyzed in <{PER_LINE_THRESHOLD}s")
    print(f"All files: {len([r for r in results if r['slowest'] < PER_LINE_THRESHOLD])}/{len(results)} PASSED\n")
