#!/usr/bin/env python3
"""
Tests for the migration runner
"""

import pytest

from deployment.config import DeploymentConfig
from deployment.deployer import ContractDeployer
from deployment.errors import ConfigurationError, DeploymentError
from deployment.migrations import (
    MIGRATIONS,
    TEST_NETWORK,
    Migration,
    run_migrations,
    select_migrations,
)
from deployment.registry import DeploymentRegistry
from deployment.fakes import DCIP_BYTECODE, PRESALE_BYTECODE, write_artifact


class TestMigrationTable:

    def test_token_migration(self):
        (migration,) = MIGRATIONS
        assert migration.label == "2_token_migration"
        assert migration.contract_name == "DCIP"
        assert migration.constructor_args == TEST_NETWORK.as_tuple()

    def test_test_network_args(self):
        assert TEST_NETWORK.router_address == "0x6725F303b657a9451d8BA641348b6761A6CC7a17"
        assert TEST_NETWORK.marketing_wallet_address == "0xDCDb52F336Ed4E0577F2Ab6b298269aaf20A1EC1"
        assert TEST_NETWORK.community_address == "0xd3EaF9906a4FeE2d4334044559DF0579Fa65F253"

    def test_select_orders_by_number(self):
        migrations = [Migration(3, "presale", "Presale", ()), Migration(2, "token", "DCIP", ())]
        assert [m.number for m in select_migrations(migrations)] == [2, 3]
        assert [m.number for m in select_migrations(migrations, only=[3])] == [3]

    def test_select_unknown_number(self):
        with pytest.raises(ConfigurationError):
            select_migrations(MIGRATIONS, only=[7])


class TestRunMigrations:

    @pytest.fixture(autouse=True)
    def setup(self, fake_eth, fake_w3, dev_profile, build_dir, tmp_path):
        self.eth = fake_eth
        self.config = DeploymentConfig(
            network=dev_profile, build_dir=build_dir, registry_path=tmp_path / "deployments.json"
        )
        self.deployer = ContractDeployer(fake_w3, dev_profile, sleep=lambda _: fake_eth.advance())
        self.registry = DeploymentRegistry(self.config.registry_path)

    def test_records_deployment(self):
        (record,) = run_migrations(self.config, self.deployer, self.registry)

        assert record.contract_name == "DCIP"
        assert self.registry.latest("development", "DCIP") == record

    def test_rerun_deploys_again(self):
        """Each run creates a new instance; the registry keeps both"""
        first = run_migrations(self.config, self.deployer, self.registry)[0]
        second = run_migrations(self.config, self.deployer, self.registry)[0]

        assert first.address != second.address
        assert self.registry.latest("development", "DCIP") == second
        assert len(self.registry.history("development", "DCIP")) == 2

    def test_missing_artifact_sends_nothing(self, tmp_path):
        """Artifacts are loaded before the first transaction"""
        migrations = [Migration(2, "token", "DCIP", ()), Migration(3, "sale", "Crowdsale", ())]

        with pytest.raises(ConfigurationError):
            run_migrations(self.config, self.deployer, self.registry, migrations=migrations)

        assert self.eth.transactions == {}

    def test_corrupt_registry_sends_nothing(self):
        """An unreadable registry stops the run before the first transaction"""
        self.config.registry_path.write_text('{"development": ')

        with pytest.raises(ConfigurationError):
            run_migrations(self.config, self.deployer, self.registry)

        assert self.eth.transactions == {}

    def test_failed_migration_leaves_no_record(self):
        self.eth.onchain_revert = "bad router"

        with pytest.raises(DeploymentError):
            run_migrations(self.config, self.deployer, self.registry)

        assert self.registry.latest("development", "DCIP") is None

    def test_compiler_outside_pin_only_warns(self, caplog):
        write_artifact(self.config.build_dir, "DCIP", DCIP_BYTECODE, compiler_version="0.8.19+commit.7dd6d404")

        records = run_migrations(self.config, self.deployer, self.registry)

        assert len(records) == 1
        assert "outside the pinned range" in caplog.text

    def test_multiple_migrations_in_order(self):
        migrations = [
            Migration(3, "presale", "Presale", ()),
            Migration(2, "token", "DCIP", TEST_NETWORK.as_tuple()),
        ]

        records = run_migrations(self.config, self.deployer, self.registry, migrations=migrations)

        assert [r.contract_name for r in records] == ["DCIP", "Presale"]
        inputs = [tx['input'] for tx in self.eth.transactions.values()]
        assert inputs == [DCIP_BYTECODE, PRESALE_BYTECODE]
