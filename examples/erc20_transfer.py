"""Example: read ERC20 metadata and transfer tokens."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

from evmkit import ERC20, Account, ClientConfig, TransactionFailedError

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOGLEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

AMOUNT = "1.5"


def main() -> None:
    private_key = os.getenv("PRIVATE_KEY")
    if not private_key:
        raise ValueError("PRIVATE_KEY not found in environment variables")
    token_address = os.getenv("TOKEN_ADDRESS")
    recipient = os.getenv("RECIPIENT")
    if not token_address or not recipient:
        raise ValueError("TOKEN_ADDRESS and RECIPIENT must be set in environment variables")

    with Account.from_private_key(private_key, ClientConfig.from_env()) as account:
        token = ERC20(token_address, account)
        print(f"{token.name()} ({token.symbol()}), {token.decimals()} decimals")
        print(f"Balance: {token.from_base_units(token.balance_of(account.address))}")

        try:
            signed = token.transfer(recipient, token.to_base_units(AMOUNT))
        except TransactionFailedError as exc:
            print(f"Transfer reverted in block {exc.receipt.block_number}")
            return
        print(f"Transferred {AMOUNT} {token.symbol()} in {signed.hash_hex}")


if __name__ == "__main__":
    main()
