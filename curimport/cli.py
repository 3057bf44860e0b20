"""Command-line interface for curimport."""

import sys
import logging
import argparse
import asyncio
from pathlib import Path
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

logger = logging.getLogger(__name__)

from curimport import __version__
from curimport.config.loader import load_config, apply_defaults, get_config_value, ConfigError
from curimport.config.validator import validate_config, ValidationError
from curimport.curation.models import Curation
from curimport.library.catalog import LaunchBoxCatalog
from curimport.library.images import GameImageCollection
from curimport.workflow.orchestrator import ImportOrchestrator
from curimport.workflow.progress import BatchImportResult
from curimport.workflow.store import CurationStore


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        prog='curimport',
        description='Import game curations into a LaunchBox-style game library',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Import curation archives using default config
  curimport --archive alien-hominid.zip dino-run.zip

  # Import curation folders into a specific library
  curimport --library ~/Flashpoint/Arcade --folder curations/*/

  # Index and report only, import nothing
  curimport --archive *.zip --dry-run

  # Import metadata-only curations from loose meta files
  curimport --meta meta.txt

  # Use custom config file
  curimport --config /path/to/config.yaml --folder curations/*/
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '--config',
        type=Path,
        metavar='PATH',
        help='Path to config.yaml (default: ./config.yaml)'
    )

    parser.add_argument(
        '--library',
        type=Path,
        metavar='PATH',
        help='Library root folder. Overrides config.'
    )

    parser.add_argument(
        '--archive',
        nargs='+',
        default=[],
        metavar='ZIP',
        help='Curation zip archives to import'
    )

    parser.add_argument(
        '--folder',
        nargs='+',
        default=[],
        metavar='DIR',
        help='Curation folders to import'
    )

    parser.add_argument(
        '--meta',
        nargs='+',
        default=[],
        metavar='FILE',
        help='Loose meta files (meta.txt / meta.yaml) to import without content'
    )

    parser.add_argument(
        '--workers',
        type=int,
        metavar='N',
        help='Number of sources indexed concurrently. Overrides config.'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Index curations and report, without importing. Overrides config.'
    )

    return parser


def _setup_logging(config: dict) -> None:
    """
    Setup logging configuration from config.

    Args:
        config: Configuration dictionary
    """
    logging_config = config.get('logging', {})

    # Get log level
    level_str = str(logging_config.get('level', 'INFO')).upper()
    level = getattr(logging, level_str, logging.INFO)

    handlers = []

    if logging_config.get('console', True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
        handlers.append(console_handler)

    # File handler (if configured)
    log_file = logging_config.get('file')
    if log_file:
        try:
            log_path = Path(log_file)
            # Create parent directory if it doesn't exist
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(level)
            formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
            file_handler.setFormatter(formatter)
            handlers.append(file_handler)
        except OSError as e:
            print(f"Error: Could not create log file '{log_file}': {e}", file=sys.stderr)
            sys.exit(1)

    # Configure root logger
    logging.basicConfig(
        level=level,
        handlers=handlers,
        force=True  # Override any existing configuration
    )

    # Suppress PIL/Pillow debug logging (verbose chunk parsing messages)
    pil_logger = logging.getLogger('PIL')
    pil_logger.setLevel(logging.INFO)


def _load_config(args: argparse.Namespace) -> dict:
    """Load config.yaml; without one, --library alone is enough to run."""
    try:
        return load_config(args.config)
    except ConfigError:
        if args.config is None and args.library is not None:
            return apply_defaults({})
        raise


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for curimport CLI.

    Args:
        argv: Command-line arguments (default: sys.argv)

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if not (args.archive or args.folder or args.meta):
        parser.error('nothing to import: give --archive, --folder or --meta')

    # Load configuration and apply CLI overrides before validating
    try:
        config = _load_config(args)

        if args.library is not None:
            config['paths']['library'] = str(args.library.expanduser())

        if args.workers is not None:
            config['indexing']['max_workers'] = args.workers

        if args.dry_run:
            config['runtime']['dry_run'] = True

        validate_config(config)
    except (ConfigError, ValidationError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    _setup_logging(config)

    try:
        return asyncio.run(run_import(config, args))
    except KeyboardInterrupt:
        print("\n\nImport interrupted by user.", file=sys.stderr)
        return 130
    except Exception as e:
        logger.debug("Fatal error", exc_info=True)
        print(f"\nFatal error: {e}", file=sys.stderr)
        return 1


async def run_import(config: dict, args: argparse.Namespace, console: Optional[Console] = None) -> int:
    """
    Run the load and import workflow (async).

    Args:
        config: Validated configuration
        args: Parsed command-line arguments
        console: Rich console for the summary (default: stdout)

    Returns:
        Exit code
    """
    console = console or Console()

    library_root = Path(config['paths']['library']).expanduser()
    staging = get_config_value(config, 'paths.staging')
    staging_root = Path(staging).expanduser() if staging else None

    catalog = LaunchBoxCatalog(library_root, host_platform=sys.platform)
    images = GameImageCollection(library_root)
    store = CurationStore()

    defaults = await ImportOrchestrator.compute_defaults(catalog)
    orchestrator = ImportOrchestrator(
        store,
        catalog,
        images,
        library_root,
        defaults=defaults,
        config=config,
        staging_root=staging_root
    )

    curations: List[Curation] = []
    if args.archive:
        curations += await orchestrator.load_archives(args.archive)
    if args.folder:
        curations += await orchestrator.load_folders(args.folder)
    if args.meta:
        curations += await orchestrator.load_meta_files(args.meta)

    console.print(build_curation_table(curations))

    if get_config_value(config, 'runtime.dry_run', False):
        console.print("[yellow]Dry run: nothing was imported.[/yellow]")
        return 0 if all(c.can_import() for c in curations) else 1

    result = await orchestrator.import_all()
    console.print(build_result_table(result))

    return 0 if result.failed == 0 else 1


def build_curation_table(curations: List[Curation]) -> Table:
    """Table of loaded curations with their indexing status."""
    table = Table(title="Loaded Curations", box=box.SIMPLE)
    table.add_column("Title", style="bold", overflow="fold")
    table.add_column("Platform", overflow="fold")
    table.add_column("Source", overflow="fold")
    table.add_column("Files", justify="right")
    table.add_column("Status", overflow="fold")

    for curation in curations:
        if curation.errors:
            status = Text("; ".join(curation.errors), style="red")
        else:
            status = Text("ready", style="green")
        table.add_row(
            curation.title,
            curation.meta.get('platform', ''),
            Path(curation.source).name,
            str(len(curation.content)),
            status
        )
    return table


def build_result_table(result: BatchImportResult) -> Table:
    """Summary table of an import batch, listing failures."""
    table = Table(title="Import Summary", show_header=False, box=box.SIMPLE)
    table.add_column("Stage", style="bold")
    table.add_column("Value", overflow="fold")

    table.add_row("Total", str(result.total))
    table.add_row(
        "Imported",
        Text(f"{result.succeeded} ({result.success_rate:.1f}%)", style="green")
    )
    table.add_row(
        "Failed",
        Text(str(result.failed), style="red" if result.failed else "")
    )
    table.add_row("Time", f"{result.elapsed:.1f}s")

    for failure in result.failures:
        table.add_row(Text(failure.title, style="red"), failure.detail)
    return table


if __name__ == '__main__':
    sys.exit(main())
