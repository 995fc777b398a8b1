"""Example: transfer ether, escalating gas if the first submission stalls."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

from evmkit import Account, ClientConfig, EVMKitError, parse_ether

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOGLEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

AMOUNT_ETH = "0.001"


def main() -> None:
    private_key = os.getenv("PRIVATE_KEY")
    if not private_key:
        raise ValueError("PRIVATE_KEY not found in environment variables")
    recipient = os.getenv("RECIPIENT")
    if not recipient:
        raise ValueError("RECIPIENT not found in environment variables")

    with Account.from_private_key(private_key, ClientConfig.from_env()) as account:
        amount = parse_ether(AMOUNT_ETH)
        signed = account.build(recipient, amount)
        print(f"Built {signed.tx_type.name} transaction nonce={signed.nonce} hash={signed.hash_hex}")

        try:
            tx_hash = account.sender.send_tx_with_smart_gas(signed)
        except EVMKitError as exc:
            print(f"Transfer failed: {exc}")
            return

        receipt = account.sender.wait_for_transaction(tx_hash, confirmations=2)
        fee = account.sender.calculate_transaction_fee(tx_hash)
        print(f"Transferred {AMOUNT_ETH} ETH in block {receipt.block_number}, fee {fee} wei")


if __name__ == "__main__":
    main()
