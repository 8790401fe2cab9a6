"""Example: Deploy a compiled contract and call it through its proxy."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

from ethshell import ShellSession, ShellSettings

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

CONTRACT_NAME = os.getenv("CONTRACT_NAME", "Token")


def main() -> None:
    """Deploy CONTRACT_NAME from ABI_PATH/BYTECODE_PATH against a local dev node."""

    abi_path = os.getenv("ABI_PATH")
    bytecode_path = os.getenv("BYTECODE_PATH")
    if not abi_path or not bytecode_path:
        raise ValueError("ABI_PATH and BYTECODE_PATH must be set in environment variables")

    settings = ShellSettings.from_env()
    with ShellSession(settings) as session:
        print(f"Connected to {session.network.info()}")

        if not len(session.registry):
            session.registry.connect_node_accounts()
        if not len(session.registry):
            raise ValueError("No accounts available; set PRIVATE_KEY or run a dev node")

        result = session.deploy(
            CONTRACT_NAME,
            abi_path=abi_path,
            bytecode_path=bytecode_path,
        )
        if not result.success:
            print(f"Deployment failed: {result.error}")
            return

        print(f"Deployed {result.name} at {result.address} on {result.chain}")
        print(f"Deployment tx hash: {result.transaction_hash}")

        proxy = session.contracts.get(CONTRACT_NAME).proxy
        reads = [name for name, methods in proxy.methods.items() if methods[0].is_read]
        print(f"Read methods: {', '.join(sorted(reads)) or 'none'}")

        for name in sorted(reads):
            if not proxy.methods[name][0].inputs:
                print(f"{name}() -> {proxy.invoke(name)}")

        for summary in session.list_contracts():
            print(f"[{summary.index}] {summary.name} {summary.address} balance={summary.balance}")


if __name__ == "__main__":
    main()
