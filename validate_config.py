"""
Validation script to check the chain table and the deployment registry
"""
import sys

from config.chains import CHAINS, ChainId, ChainRegistry
from core.errors import MulticastError


def validate_chains() -> list[str]:
    problems = []
    for chain_id, config in CHAINS.items():
        if chain_id != config.chain_id:
            problems.append(f"Mismatch ChainId for {config.name}")
        if not any(config.rpc_endpoints):
            problems.append(f"No RPC endpoints for {config.name}")
    return problems


def validate_registry(registry: ChainRegistry) -> list[str]:
    problems = []
    known = {c.value for c in ChainId}
    for chain_id in registry.deployments:
        if chain_id not in known:
            problems.append(f"Deployment for network {chain_id} has no chain configuration")
    for chain_id in CHAINS:
        if chain_id not in registry:
            problems.append(f"{chain_id.name} has no multicast deployment")
    return problems


def main(path=None) -> int:
    print("Checking chains and deployments...")
    try:
        registry = ChainRegistry.load(path)
    except (OSError, ValueError, MulticastError) as e:
        print(f"❌ Could not load deployment registry: {e}")
        return 1

    problems = validate_chains() + validate_registry(registry)
    for problem in problems:
        print(f"❌ {problem}")
    if problems:
        return 1

    print(f"✓ registry v{registry.version}: {len(registry)} deployments, {len(CHAINS)} chains")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1] if len(sys.argv) > 1 else None))
