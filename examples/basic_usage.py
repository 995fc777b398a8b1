"""Example: inspect an account and the network it is connected to."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

from evmkit import Account, ClientConfig, format_ether

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOGLEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def main() -> None:
    """Print identity, balance and gas suggestions for the configured account."""

    private_key = os.getenv("PRIVATE_KEY")
    mnemonic = os.getenv("MNEMONIC")
    config = ClientConfig.from_env(dotenv=False)

    if private_key:
        account = Account.from_private_key(private_key, config)
    elif mnemonic:
        account = Account.from_mnemonic(mnemonic, int(os.getenv("ACCOUNT_INDEX", "0")), config)
    else:
        raise ValueError("PRIVATE_KEY or MNEMONIC must be set in environment variables")

    with account:
        info = account.account_info()
        print(f"Address:  {info['address']}")
        print(f"Network:  {info.get('network')} (chain id {info['chain_id']})")
        print(f"Balance:  {info.get('balance_eth', 'unavailable')} ETH")

        suggestions = account.gas_suggestions()
        print(f"Gas price: {suggestions.gas_price} wei")
        print(f"Tip cap:   {suggestions.max_priority_fee_per_gas} wei")
        print(f"Fee cap:   {suggestions.max_fee_per_gas} wei")

        signature = account.sign_message("hello from evmkit")
        print(f"Signed message: {signature}")
        print(f"Nonce: {account.nonce(account.address)}, balance {format_ether(account.eth_balance())}")


if __name__ == "__main__":
    main()
