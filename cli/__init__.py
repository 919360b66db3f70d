"""
CLI Main Module - Command line front end of the audio extractor
Supports command line argument parsing and command execution
"""

import argparse
import asyncio
import logging
from typing import Any

from log import logger, set_log_level
from util import FormatError


class CLIMain:
    """CLI Main Controller"""

    def __init__(self):
        self.cli_core = None
        self.commands = None

    def _lazy_init(self, config_path: str | None, config_overrides: dict[str, Any]):
        """Delayed initialization to avoid circular import"""
        if self.cli_core is None:
            from .core import CLICore
            from .commands import CLICommands

            self.cli_core = CLICore(config_path)
            self.cli_core.initialize(config_overrides)
            self.commands = CLICommands(self.cli_core)

    def parse_arguments(self, argv: list[str] | None = None) -> argparse.Namespace:
        """Parse command line arguments"""
        parser = argparse.ArgumentParser(
            description="Eternal Audio Extractor - extracts and names the sounds of .snd files",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Example usage:
  # Extract and name every sound, converting .wem to .ogg
  python audio_extractor.py extract music.snd "<game>/base/sound/soundbanks/pc" ./out -c

  # Dump the resolved music names
  python audio_extractor.py names "<game>/base/sound/soundbanks/pc" --output names.json
            """,
        )

        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Verbose output"
        )
        parser.add_argument(
            "--config", help="Config file path (default: config.pickle)"
        )

        subparsers = parser.add_subparsers(dest="mode", help="Run mode")

        # Extract mode
        extract_parser = subparsers.add_parser("extract", help="Extract the sounds of a .snd file")
        extract_parser.add_argument("snd", help="Path to the .snd file to extract")
        extract_parser.add_argument(
            "game_dir", help="Directory containing soundmetadata.bin and the .pck files"
        )
        extract_parser.add_argument("output", help="Output directory")
        extract_parser.add_argument(
            "-c", "--convert", action="store_true",
            help="Convert .wem files to .ogg (will increase extraction time)"
        )
        extract_parser.add_argument(
            "-u", "--unused", action="store_true",
            help="Extract unused sounds, named by their sound id"
        )
        extract_parser.add_argument(
            "--skip-state-roots", action="store_true",
            help="Do not name music under switch containers governed by a state group"
        )

        # Names mode
        names_parser = subparsers.add_parser("names", help="Resolve and dump the music names")
        names_parser.add_argument(
            "game_dir", help="Directory containing soundmetadata.bin and the .pck files"
        )
        names_parser.add_argument("--output", "-o", help="JSON output file (default: stdout)")
        names_parser.add_argument(
            "--skip-state-roots", action="store_true",
            help="Do not name music under switch containers governed by a state group"
        )

        return parser.parse_args(argv)

    def get_config_overrides(self, args: argparse.Namespace) -> dict[str, Any]:
        """Command line flags only ever switch options on"""
        overrides: dict[str, Any] = {}
        if getattr(args, "convert", False):
            overrides["auto_convert"] = True
        if getattr(args, "unused", False):
            overrides["extract_unused"] = True
        if getattr(args, "skip_state_roots", False):
            overrides["skip_state_group_roots"] = True
        return overrides

    async def run(self, args: argparse.Namespace) -> bool:
        self._lazy_init(args.config, self.get_config_overrides(args))
        assert self.commands is not None and self.cli_core is not None

        try:
            return await self.commands.execute_command(args.mode, vars(args))
        finally:
            self.cli_core.cleanup()


def main(argv: list[str] | None = None) -> int:
    """Main function"""
    cli = CLIMain()

    args = cli.parse_arguments(argv)

    if args.verbose:
        set_log_level(logging.DEBUG)

    if args.mode not in ("extract", "names"):
        print("Error: Please specify run mode (extract, names)")
        return 1

    try:
        success = asyncio.run(cli.run(args))
        return 0 if success else 1
    except KeyboardInterrupt:
        logger.info("User interrupted")
        return 1
    except FormatError as e:
        logger.error(f"Corrupt input: {e}")
        return 1
    except Exception as e:
        logger.error(f"CLI execution error: {e}")
        return 1
