"""Command-line interface for checking material definitions.

Usage:
    material-resolver check materials.yaml
    material-resolver check materials.yaml --library nuclides.yaml --temperature-policy nearest
    material-resolver info
"""

import argparse
import logging
import sys

from material_resolver.config.enums import TemperaturePolicy
from material_resolver.config.resolver_config import ResolverConfig
from material_resolver.config.validation import ConfigurationError, validate_config
from material_resolver.core.errors import MaterialError
from material_resolver.materials.registry import MaterialRegistry
from material_resolver.nuclear_data.service import NuclideLibrary

logger = logging.getLogger(__name__)


def _load_library(path):
    if path is None:
        return NuclideLibrary.default()
    return NuclideLibrary.from_yaml(path)


def cmd_check(args: argparse.Namespace) -> int:
    """Register every material of a file, seal the registry and print a summary."""
    config = ResolverConfig.from_defaults()
    if args.temperature_policy is not None:
        config = config.with_overrides(temperature_policy=TemperaturePolicy(args.temperature_policy))
    if args.default_temperature is not None:
        config = config.with_overrides(default_temperature=args.default_temperature)

    try:
        validate_config(config)
        library = _load_library(args.library)
        registry = MaterialRegistry(library, config=config)
        registry.load_from_yaml(args.materials)
        registry.seal()
    except (MaterialError, ConfigurationError, FileNotFoundError, ValueError) as e:
        logger.error(f"Material check failed: {e}")
        return 1

    print("\n" + "=" * 72)
    print(f"{'ID':>6} {'Name':<20} {'T [K]':>8} {'N [at/b-cm]':>14} {'rho [g/cm3]':>12} {'Nucl':>5}")
    print("-" * 72)
    for record in registry:
        print(
            f"{record.id:>6} {record.name[:20]:<20} {record.resolved_temperature:>8.1f} "
            f"{record.total_atomic_density:>14.6e} {record.total_mass_density:>12.5f} "
            f"{len(record):>5}"
        )
        if args.verbose:
            for entry in record.entries:
                law = f"  [{entry.thermal_law.name} @ {entry.thermal_law.temperature} K]" if entry.thermal_law else ""
                print(f"{'':>8}{entry.nuclide:<10} {entry.atom_density:>14.6e}{law}")
    print("=" * 72)
    print(f"{len(registry)} materials OK")
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    """Display the nuclides and thermal laws of a library."""
    try:
        library = _load_library(args.library)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Cannot load library: {e}")
        return 1

    print("\n" + "=" * 60)
    print("NUCLIDE LIBRARY")
    print("=" * 60)
    for name in library.list_nuclides():
        data = library.nuclides[name]
        temps = ", ".join(f"{t:g}" for t in data.temperatures)
        print(f"  {name:<8} M = {data.molar_mass:>12.6f} g/mol   T = [{temps}] K")

    if library.thermal_laws:
        print("\nThermal scattering laws:")
        for name, law in library.thermal_laws.items():
            print(f"  {name:<14} {', '.join(law.nuclides):<10} {len(law.temperatures)} temperatures")
    print("=" * 60)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="material-resolver",
        description="Resolve and check material compositions for Monte Carlo transport",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging and per-nuclide output")
    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser("check", help="Resolve all materials of a YAML file")
    check.add_argument("materials", help="YAML file with a 'materials' list")
    check.add_argument("--library", default=None, help="Nuclide library YAML (default: bundled)")
    check.add_argument(
        "--temperature-policy",
        choices=[p.value for p in TemperaturePolicy],
        default=None,
        help="Override the temperature matching policy",
    )
    check.add_argument("--default-temperature", type=float, default=None, help="Default temperature [K]")
    check.set_defaults(func=cmd_check)

    info = subparsers.add_parser("info", help="List nuclides in the library")
    info.add_argument("--library", default=None, help="Nuclide library YAML (default: bundled)")
    info.set_defaults(func=cmd_info)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
