"""
CLI Command Module - Implements the execution logic of the CLI commands
Provides the extract and names commands
"""

import json
from typing import Any

from .core import CLICore
from log import logger


class CLICommands:
    """CLI Command Executor"""

    def __init__(self, cli_core: CLICore):
        self.cli_core = cli_core

        # Command mapping
        self.commands = {
            "extract": self.extract,
            "names": self.names,
        }

    async def execute_command(self, command: str, args: dict[str, Any]) -> bool:
        """
        Execute command

        @exception
        - FormatError and OSError propagate so the caller can report the
        offending file
        """
        if command not in self.commands:
            logger.error(f"Unknown command: {command}")
            return False

        logger.info(f"Executing command: {command}")
        logger.debug(f"Command args: {args}")

        return await self.commands[command](args)

    async def extract(self, args: dict[str, Any]) -> bool:
        """Extract and name every sound of a .snd file"""
        self.cli_core.load_game_dir(args["game_dir"])

        report = await self.cli_core.extract(args["snd"], args["output"])

        print(report.summary(self.cli_core.get_config().extract_unused))
        return True

    async def names(self, args: dict[str, Any]) -> bool:
        """Dump the resolved music names"""
        self.cli_core.load_game_dir(args["game_dir"])
        assert self.cli_core.name_map != None

        names = self.cli_core.name_map.to_dict()
        output = args.get("output")
        if output:
            with open(output, "w", encoding="utf-8") as f:
                json.dump(names, f, indent=2)
            logger.info(f"Wrote {len(names)} names to {output}")
        else:
            print(json.dumps(names, indent=2))
        return True
