"""Example: checking a wallet against a candy machine allowlist.

Shows how to use the engine as a library rather than running the HTTP
service. Useful for computing the root to put in a guard group's
``allowList`` settings and for checking a wallet before minting.

Usage:
    python examples/check_wallet.py <allowlist.json|url> <wallet> [group] [committed_root]
"""

from __future__ import annotations

import sys

from candy_allowlist import AllowListRegistry, load_allowlists


def main() -> None:
    if len(sys.argv) < 3:
        print("Usage: python examples/check_wallet.py <allowlist> <wallet> [group] [root]")
        sys.exit(1)

    source, wallet = sys.argv[1], sys.argv[2]
    group = sys.argv[3] if len(sys.argv) > 3 else "default"

    # Step 1: Build every group's tree and show the roots to commit on-chain
    registry = AllowListRegistry(load_allowlists(source))
    print("=" * 60)
    for label in registry.labels:
        root = registry.group_root(label)
        print(f"  {label:<12} {root.size:>6} wallets  root {root.root_hash}")
    print("=" * 60)

    # Step 2: Check the wallet against the committed root (defaults to the local one)
    committed = sys.argv[4] if len(sys.argv) > 4 else registry.root(group)
    decision = registry.decision(wallet, committed, group)

    print(f"\nWallet:  {wallet}")
    print(f"Group:   {group}")
    print(f"Allowed: {'YES' if decision.allowed else 'NO'} ({decision.reason})")
    if decision.proof:
        print("Proof:")
        for sibling in decision.proof:
            print(f"  {sibling}")


if __name__ == "__main__":
    main()
