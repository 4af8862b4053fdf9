"""Print at-risk residents and the latest cohort benchmarks for a program."""
import sys

import httpx

BASE = "http://localhost:8000/api/v1"
client = httpx.Client(timeout=15)

if len(sys.argv) < 2:
    print("usage: python scripts/check_program.py <program_id> [--snapshot]")
    sys.exit(1)
program_id = sys.argv[1]

if "--snapshot" in sys.argv:
    r = client.post(f"{BASE}/programs/{program_id}/cohort-snapshot")
    print(f"Snapshot: {r.status_code} ({len(r.json().get('snapshots', []))} rows)")

r = client.get(f"{BASE}/programs/{program_id}/at-risk")
if r.status_code != 200:
    print(f"At-risk fetch failed: {r.status_code} - {r.text[:200]}")
    sys.exit(1)
data = r.json()
print(f"=== {data['count']} resident(s) at risk ===\n")
for resident in data["at_risk"]:
    print(f"{resident['display_name']} (PGY-{resident['pgy_year'] or '?'}) [{resident['risk_level']}]")
    print(f"  Avg level: {resident['avg_level']}  expected: {resident['expected_level']}  gap: {resident['gap']}")
    for m in resident["weak_milestones"]:
        print(f"    {m['id']:<10} {m['subdomain']:<32} {m['level']}")
    print()

r = client.get(f"{BASE}/programs/{program_id}/cohort-stats")
snapshots = r.json().get("snapshots", [])
if not snapshots:
    print("No cohort snapshots yet (run with --snapshot)")
    sys.exit(0)

latest = snapshots[0]["snapshot_date"]
print(f"=== Cohort benchmarks {latest} ===")
for s in snapshots:
    if s["snapshot_date"] != latest:
        break
    p = s["percentiles"]
    print(
        f"  PGY-{s['pgy_year']} {s['metric_type']:<18} n={s['sample_size']:<3} "
        f"p25={p['p25']} p50={p['p50']} p75={p['p75']} mean={p['mean']}"
    )
