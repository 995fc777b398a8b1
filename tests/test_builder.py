"""Tests for transaction assembly, signing and the dynamic/legacy fallback."""

import pytest
from eth_account import Account as EthAccount

from conftest import ADDRESS, GWEI, RECIPIENT, FakeEth, make_account
from evmkit.abi import function_selector
from evmkit.config import ClientConfig
from evmkit.exceptions import NetworkError, SimulationRevertError, ValidationError
from evmkit.tokens.abis import ERC20_ABI
from evmkit.types import GasParams, TxType


class TestBuild:
    def test_legacy(self, account, fake_eth):
        fake_eth.nonce = 4
        signed = account.builder.build_legacy(RECIPIENT, 7, b"", gas_limit=21_000)

        assert signed.tx_type is TxType.LEGACY
        assert signed.nonce == 4
        assert signed.gas == 21_000
        assert signed.gas_price == 10 * GWEI
        assert signed.max_fee_per_gas is None
        assert signed.chain_id == 1
        assert signed.to == RECIPIENT
        assert EthAccount.recover_transaction(signed.raw_transaction) == ADDRESS

    def test_dynamic(self, account):
        signed = account.builder.build_dynamic(RECIPIENT, 1, gas_limit=21_000)

        assert signed.tx_type is TxType.DYNAMIC
        assert signed.raw_transaction[0] == 2
        assert signed.max_priority_fee_per_gas == GWEI
        assert signed.max_fee_per_gas == 20 * GWEI
        assert signed.gas_price is None
        assert EthAccount.recover_transaction(signed.raw_transaction) == ADDRESS

    def test_dynamic_cap_raised_to_large_tip(self, account, fake_eth):
        fake_eth.max_priority_fee = 25 * GWEI
        signed = account.builder.build_dynamic(RECIPIENT, 0, gas_limit=21_000)
        assert signed.max_fee_per_gas >= signed.max_priority_fee_per_gas

    def test_auto_gas_limit_is_estimated(self, account, fake_eth):
        fake_eth.estimate = 55_555
        signed = account.build(RECIPIENT, 0, b"\x01\x02")
        assert signed.gas == 55_555
        assert fake_eth.estimate_calls[-1]["data"] == "0x0102"

    def test_estimate_failure_aborts_build(self, account, fake_eth):
        fake_eth.estimate = ValueError("execution reverted")
        with pytest.raises(SimulationRevertError):
            account.build(RECIPIENT, 0, b"\x01")
        assert fake_eth.sent == []

    def test_contract_creation_omits_recipient(self, account):
        signed = account.build(None, 0, b"\x60\x80\x60\x40", gas_limit=100_000)
        assert signed.to is None
        assert signed.is_contract_creation
        assert EthAccount.recover_transaction(signed.raw_transaction) == ADDRESS

        empty_to = account.builder.build_legacy("", 0, b"\x60\x80", gas_limit=100_000)
        assert empty_to.to is None

    def test_invalid_recipient_rejected(self, account, fake_eth):
        with pytest.raises(ValidationError):
            account.build("0x123", 0, b"")
        assert fake_eth.estimate_calls == []

    def test_invalid_hex_data_rejected(self, account):
        with pytest.raises(ValidationError):
            account.build(RECIPIENT, 0, "0xnope")

    def test_prefers_dynamic(self, account):
        assert account.build(RECIPIENT, 0, gas_limit=21_000).tx_type is TxType.DYNAMIC

    def test_explicit_gas_price_is_legacy_only(self, account):
        signed = account.build(RECIPIENT, 0, gas_limit=21_000, gas_price=3 * GWEI)
        assert signed.tx_type is TxType.LEGACY
        assert signed.gas_price == 3 * GWEI

    def test_falls_back_to_legacy(self, account, fake_eth, caplog):
        fake_eth.max_priority_fee = ValueError("the method eth_maxPriorityFeePerGas does not exist")
        signed = account.build(RECIPIENT, 0, gas_limit=21_000)
        assert signed.tx_type is TxType.LEGACY
        assert "falling back" in caplog.text

    def test_all_variants_fail(self, account, fake_eth):
        fake_eth.max_priority_fee = ValueError("no tip")
        fake_eth.gas_price = ValueError("no price")
        with pytest.raises(NetworkError) as excinfo:
            account.build(RECIPIENT, 0, gas_limit=21_000)
        failures = excinfo.value.details["fallback_failures"]
        assert [failure["variant"] for failure in failures] == ["DYNAMIC"]

    def test_nonce_and_limit_shared_between_variants(self, account, fake_eth):
        fake_eth.max_priority_fee = ValueError("no tip")
        fake_eth.nonce = 9
        signed = account.build(RECIPIENT, 0, b"\x01")
        assert signed.nonce == 9
        assert len(fake_eth.estimate_calls) == 1

    def test_build_with_gas_params_picks_envelope(self, account):
        dynamic = GasParams(gas_limit=21_000, max_priority_fee_per_gas=GWEI, max_fee_per_gas=3 * GWEI)
        legacy = GasParams(gas_limit=21_000, gas_price=GWEI)
        assert account.builder.build_with_gas_params(RECIPIENT, 0, b"", dynamic, 3).tx_type is TxType.DYNAMIC
        signed = account.builder.build_with_gas_params(RECIPIENT, 0, b"", legacy, 3)
        assert signed.tx_type is TxType.LEGACY
        assert signed.nonce == 3


class TestChainIdUnknown:
    def test_legacy_signed_without_chain_id(self, caplog):
        fake = FakeEth()
        fake.chain_id = ValueError("unsupported")
        account = make_account(fake)
        signed = account.builder.build_legacy(RECIPIENT, 0, gas_limit=21_000)
        assert signed.chain_id == 0
        assert EthAccount.recover_transaction(signed.raw_transaction) == ADDRESS
        assert "replay protection" in caplog.text


class TestNonceSequencer:
    @pytest.fixture
    def sequenced(self, fake_eth):
        fake_eth.nonce = 5
        return make_account(fake_eth, config=ClientConfig(nonce_sequencer=True))

    def test_consecutive_builds_get_consecutive_nonces(self, sequenced):
        first = sequenced.build(RECIPIENT, 0, gas_limit=21_000)
        second = sequenced.build(RECIPIENT, 0, gas_limit=21_000)
        assert (first.nonce, second.nonce) == (5, 6)

    def test_failed_build_releases_reservation(self, sequenced, fake_eth):
        fake_eth.max_priority_fee = ValueError("no tip")
        fake_eth.gas_price = ValueError("no price")
        with pytest.raises(NetworkError):
            sequenced.build(RECIPIENT, 0, gas_limit=21_000)

        fake_eth.max_priority_fee = GWEI
        fake_eth.gas_price = 10 * GWEI
        assert sequenced.build(RECIPIENT, 0, gas_limit=21_000).nonce == 5

    def test_reset_reseeds_from_node(self, sequenced, fake_eth):
        sequenced.build(RECIPIENT, 0, gas_limit=21_000)
        fake_eth.nonce = 20
        sequenced.nonce_sequencer.reset()
        assert sequenced.build(RECIPIENT, 0, gas_limit=21_000).nonce == 20


class TestTransfers:
    def test_send_ether(self, account, fake_eth):
        tx_hash = account.send_ether(RECIPIENT, 1_000)
        assert len(fake_eth.sent) == 1
        assert fake_eth.receipts[tx_hash]["status"] == 1

    def test_send_ether_requires_positive_amount(self, account):
        with pytest.raises(ValidationError):
            account.send_ether(RECIPIENT, 0)

    def test_send_ether_checks_balance_including_gas(self, account, fake_eth):
        fake_eth.balance = 10**18
        with pytest.raises(ValidationError) as excinfo:
            account.send_ether(RECIPIENT, 10**18)
        assert "Insufficient balance" in excinfo.value.message
        assert fake_eth.sent == []

    def test_send_ether_checks_dynamic_fee_cap(self, account, fake_eth):
        # covers the legacy price (10 gwei) but not the dynamic cap (20 gwei)
        fake_eth.balance = 1_000 + 21_000 * 15 * GWEI
        with pytest.raises(ValidationError):
            account.send_ether(RECIPIENT, 1_000)
        assert fake_eth.sent == []

        account.send_ether(RECIPIENT, 1_000, gas_price=10 * GWEI)
        assert len(fake_eth.sent) == 1

    def test_failed_balance_check_releases_nonce(self, fake_eth):
        fake_eth.nonce = 3
        fake_eth.balance = 0
        sequenced = make_account(fake_eth, config=ClientConfig(nonce_sequencer=True))
        with pytest.raises(ValidationError):
            sequenced.send_ether(RECIPIENT, 1_000)
        assert sequenced.nonce_sequencer.peek() == 3

    def test_send_contract_call_requires_data(self, account):
        with pytest.raises(ValidationError):
            account.builder.send_contract_call(RECIPIENT, b"")

    def test_send_contract_method_encodes_call(self, account, fake_eth):
        signed = account.send_contract_method(RECIPIENT, ERC20_ABI, "transfer", ADDRESS, 5)
        assert signed.data[:4] == function_selector("transfer(address,uint256)")
        assert len(fake_eth.sent) == 1

    def test_preflight_runs_both_simulations(self, account, fake_eth):
        account.builder.preflight_contract_method(ADDRESS, RECIPIENT, ERC20_ABI, "approve", ADDRESS, 1)
        assert len(fake_eth.estimate_calls) == 1
        assert len(fake_eth.call_calls) == 1

    def test_deploy_contract(self, account, fake_eth):
        receipt = account.builder.deploy_contract("0x6080", gas_limit=100_000)
        assert receipt.succeeded
        assert fake_eth.sent
