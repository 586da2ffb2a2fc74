"""
Ordered migration steps.

Each migration creates one contract with fixed constructor arguments. Runs
are not idempotent: running a migration again deploys a new instance.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from .artifacts import ContractArtifact
from .config import DeploymentConfig
from .deployer import ContractDeployer
from .errors import ConfigurationError
from .registry import DeploymentRecord, DeploymentRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeploymentArgs:
    """DCIP constructor arguments, in constructor order"""
    router_address: str
    marketing_wallet_address: str
    community_address: str

    def as_tuple(self) -> Tuple[str, str, str]:
        return (self.router_address, self.marketing_wallet_address, self.community_address)


TEST_NETWORK = DeploymentArgs(
    router_address="0x6725F303b657a9451d8BA641348b6761A6CC7a17",  # PancakeSwap testnet router
    marketing_wallet_address="0xDCDb52F336Ed4E0577F2Ab6b298269aaf20A1EC1",
    community_address="0xd3EaF9906a4FeE2d4334044559DF0579Fa65F253",
)


@dataclass(frozen=True)
class Migration:
    number: int
    name: str
    contract_name: str
    constructor_args: Tuple[Any, ...]

    @property
    def label(self) -> str:
        return f"{self.number}_{self.name}"


MIGRATIONS: Tuple[Migration, ...] = (
    Migration(2, "token_migration", "DCIP", TEST_NETWORK.as_tuple()),
)


def select_migrations(
    migrations: Sequence[Migration], only: Optional[Iterable[int]] = None
) -> List[Migration]:
    ordered = sorted(migrations, key=lambda m: m.number)
    if only is None:
        return ordered

    wanted = set(only)
    unknown = wanted - {m.number for m in ordered}
    if unknown:
        raise ConfigurationError(f"Unknown migration numbers: {', '.join(str(n) for n in sorted(unknown))}")
    return [m for m in ordered if m.number in wanted]


def load_artifacts(config: DeploymentConfig, migrations: Sequence[Migration]) -> List[ContractArtifact]:
    """Loads every artifact up front so a missing build fails before any transaction."""
    artifacts = []
    for migration in migrations:
        artifact = ContractArtifact.load(config.build_dir, migration.contract_name)
        if artifact.compiler_version and not config.compiler.allows(artifact.compiler_version):
            logger.warning(
                f"{artifact.contract_name} was built with {config.compiler.name} {artifact.compiler_version}, "
                f"outside the pinned range {config.compiler.version}"
            )
        artifacts.append(artifact)
    return artifacts


def run_migrations(
    config: DeploymentConfig,
    deployer: ContractDeployer,
    registry: DeploymentRegistry,
    migrations: Sequence[Migration] = MIGRATIONS,
    only: Optional[Iterable[int]] = None,
) -> List[DeploymentRecord]:
    """
    Run migrations in order against the configured network.

    Stops at the first failure; migrations that completed before it stay
    recorded, and the failing one leaves no record.
    """
    selected = select_migrations(migrations, only)
    artifacts = load_artifacts(config, selected)
    registry.validate()

    records = []
    for migration, artifact in zip(selected, artifacts):
        logger.info(f"Running migration {migration.label}...")
        record = deployer.deploy(artifact, migration.constructor_args)
        registry.record(config.network.name, record)
        records.append(record)

    logger.info(f"Migrations finished on '{config.network.name}': {len(records)} contract(s) deployed")
    return records
