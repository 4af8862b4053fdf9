"""Recompute every milestone for a trainee and show remaining gaps."""
import sys

import httpx

BASE = "http://localhost:8000/api/v1"
client = httpx.Client(timeout=30)

if len(sys.argv) != 2:
    print("usage: python scripts/recalculate_trainee.py <trainee_id>")
    sys.exit(1)
trainee_id = sys.argv[1]

r = client.post(f"{BASE}/trainees/{trainee_id}/milestones/recalculate")
print(f"Recalculate: {r.status_code}")
for m in r.json().get("milestones", []):
    print(f"  {m['milestone_id']:<10} level {m['level']:<4} ({m['activity_count']} activities, avg {m['avg_score']})")

r = client.get(f"{BASE}/trainees/{trainee_id}/milestones/gaps")
gaps = r.json()
print(f"\nExpected level: {gaps['expected_level']} (PGY-{gaps['pgy_year'] or '?'})")
print(f"Gaps: {gaps['total_gaps']} ({gaps['high_priority']} high, {gaps['medium_priority']} medium)")
for g in gaps["gaps"]:
    print(f"  [{g['priority']:<6}] {g['milestone_id']:<10} {g['current_level']} -> {g['expected_level']}")
