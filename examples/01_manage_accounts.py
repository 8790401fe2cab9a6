"""Example: Import, derive, list and remove development accounts."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

from ethshell import AccountView, ShellSession, ShellSettings

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Well known development mnemonic; never fund these accounts on a live network.
DEV_MNEMONIC = "test test test test test test test test test test test junk"


def main() -> None:
    """Populate a scratch registry and show how indices and the default move."""

    settings = ShellSettings.from_env()
    with ShellSession(settings) as session:
        registry = session.registry

        private_key = os.getenv("PRIVATE_KEY")
        if private_key and registry.find_by_key(private_key) is None:
            imported = registry.add_from_key(private_key)
            print(f"Imported {imported.address} at index {imported.index}")

        if not any(record.phrase == DEV_MNEMONIC for record in registry.hd_accounts):
            derived = registry.add_from_mnemonic(DEV_MNEMONIC, count=3)
            for record in derived:
                print(f"Derived {record.address} at {record.path}")

        generated = registry.create_random(2)
        print(f"Generated {[record.address for record in generated]}")

        for record in registry.accounts(AccountView.ALL):
            kind = "hd" if record.is_hd else "flat"
            print(f"[{record.index}] {record.address} {record.type.value} ({kind})")

        print(f"Default account: {registry.default_snapshot.get('address')}")

        removed = registry.remove([record.index for record in generated])
        print(f"Removed {len(removed)} generated accounts; {len(registry)} remain")


if __name__ == "__main__":
    main()
