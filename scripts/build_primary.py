import sys
from pathlib import Path

# Add project root to sys.path
sys.path.append(str(Path(__file__).parent.parent))

from src.build_primary_table import run_build

if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="Build the per-candidate-per-day primary table")
    parser.add_argument("--config", type=str, default=None, help="Pipeline YAML (defaults to $PRIMARY_SIGNALS_CONFIG or config/pipeline.yaml)")
    parser.add_argument("--cycles", type=int, nargs="*", default=None, help="Cycles to build (default: all configured)")
    parser.add_argument("--version", type=str, default=None, help="Dataset version tag (default: timestamp)")
    parser.add_argument("--output-dir", type=str, default=None, help="Override the configured output directory")
    args = parser.parse_args()
    
    run_build(
        config_path=Path(args.config) if args.config else None,
        cycles=args.cycles,
        version=args.version,
        output_dir=Path(args.output_dir) if args.output_dir else None
    )
