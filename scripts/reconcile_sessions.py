"""
Reconcile script for sessions left in a partial state.

Drains the drift ledger once: re-creates missing Stream resources of active
sessions and deletes orphaned ones of completed sessions.

Usage:
    python scripts/reconcile_sessions.py           # one pass
    python scripts/reconcile_sessions.py --list    # show ledger entries only
"""
import argparse
import asyncio
import sys
from pathlib import Path

# Add backend to path
backend_path = Path(__file__).parent.parent / "backend"
sys.path.insert(0, str(backend_path))

from sessionhub.config.redis import close_redis
from sessionhub.models.database import AsyncSessionLocal
from sessionhub.services.realtime import StreamGateway
from sessionhub.services.session import DriftLedger, SessionReconciler


async def list_entries(ledger: DriftLedger):
    entries = await ledger.entries()
    if not entries:
        print("✅ Drift ledger is empty. Nothing to reconcile!")
        return

    print(f"📋 Found {len(entries)} drifting session(s):")
    for entry in entries:
        print(f"  - Session: {entry.session_id}")
        print(f"    Call: {entry.call_id}")
        print(f"    Operation: {entry.operation}")
        print(f"    Resources: {', '.join(entry.resources)}")
        print(f"    Recorded: {entry.recorded_at} (attempts: {entry.attempts})")


async def reconcile(ledger: DriftLedger):
    gateway = StreamGateway.from_settings()
    try:
        reconciler = SessionReconciler(ledger, gateway, AsyncSessionLocal)
        report = await reconciler.run_once()
    finally:
        await gateway.aclose()

    print(f"✅ Repaired: {len(report.repaired)}")
    print(f"⏳ Still drifting: {len(report.retained)}")
    print(f"🗑️  Dropped (session missing): {len(report.dropped)}")
    for session_id in report.retained:
        print(f"  - {session_id}")


async def main(args):
    ledger = DriftLedger()
    try:
        if args.list:
            await list_entries(ledger)
        else:
            await reconcile(ledger)
    finally:
        await close_redis()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Reconcile drifting interview sessions")
    parser.add_argument("--list", action="store_true", help="only list ledger entries")
    print("🧹 Session Reconcile Script")
    print("=" * 50)
    asyncio.run(main(parser.parse_args()))
