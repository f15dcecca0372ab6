#!/usr/bin/env python3
"""Live check against a real fleet backend.

Signs in, completes the e-mail code step if the account needs it,
bootstraps the role's data and prints a short summary.  Optionally keeps
the notification channel open for a while and prints what arrives.

Usage
-----
::

    export FLEET_URL="https://<project>.supabase.co"
    export FLEET_ANON_KEY="..."
    export FLEET_EMAIL="manager@example.com"
    export FLEET_PASSWORD="..."
    python scripts/live_check.py --listen 30

Options::

    --local-2fa          Check the code against the locally generated one
    --listen SECS        Keep the notification channel open (default: 0)
    --verbose / -v       Enable debug logging
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyfleet import FleetClient, FleetConfig, FleetError, PushNotification, Role, TwoFactorMode  # noqa: E402


def _print_notification(notification: PushNotification) -> None:
    print(f"  [{notification.sent_at:%H:%M:%S}] {notification.title}: {notification.message}")


def _summary(client: FleetClient, role: Role) -> list[str]:
    store = client.store
    lines = [f"vehicles: {len(store.vehicles)}"]
    if role == Role.FLEET_MANAGER:
        lines.append(f"drivers: {len(store.drivers)}")
        lines.append(f"trips: {len(store.trips)}")
        lines.append(f"service centers: {len(store.service_centers)}")
    elif role == Role.DRIVER:
        lines.append(f"assigned trips: {len(store.trips)}")
    else:
        task = store.current_task
        lines.append(f"tasks: {len(store.personnel_tasks)}")
        lines.append(f"current task: {task.task_id if task else '-'}")
    return lines


async def _run(args: argparse.Namespace) -> int:
    email = os.environ.get("FLEET_EMAIL", "")
    password = os.environ.get("FLEET_PASSWORD", "")
    if not email or not password:
        print("FLEET_EMAIL and FLEET_PASSWORD must be set", file=sys.stderr)
        return 2

    mode = TwoFactorMode.LOCAL if args.local_2fa else TwoFactorMode.SERVER
    async with FleetClient(FleetConfig.from_env(), notifier=_print_notification) as client:
        flow = client.sign_in_flow(mode=mode)
        try:
            user = await flow.sign_in(email, password)
            if user is None:
                two_factor = flow.start_two_factor()
                print(f"Verification code sent to {email}")
                two_factor.verification_code = await asyncio.to_thread(input, "Code: ")
                user = await two_factor.verify_code()
        except FleetError as exc:
            print(f"Sign-in failed: {exc}", file=sys.stderr)
            return 1

        print(f"Signed in as {user.meta_data.full_name or user.id} ({user.role})")
        if await client.auth.check_first_time_login(user.id):
            print("  first-time login: the temporary password must be replaced")

        bootstrapped = await client.bootstrap()
        if bootstrapped is None:
            print("Bootstrap failed", file=sys.stderr)
            return 1
        for line in _summary(client, bootstrapped.role):
            print(f"  {line}")

        if args.listen > 0:
            print(f"Listening for notifications for {args.listen}s ...")
            await asyncio.sleep(args.listen)

        await client.sign_out()
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--local-2fa", action="store_true")
    parser.add_argument("--listen", type=float, default=0.0)
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
