"""
CLI Core Module - Runs the extraction pipeline for the CLI commands
Metadata and soundbanks are loaded once and reused by every command
"""

import copy
import os
from typing import Any

import config as cfg
import env
import fileutil
import mediautil

from const import SOUND_METADATA_FILE_NAME
from log import logger
from name_map import NameMap
from name_resolver import resolve_names
from snd_extractor import ExtractionReport, SndExtractor
from sound_metadata import SoundMetadata
from wwise_hierarchy import WwiseHierarchy
from wwise_package import WwisePackage, list_packages


class CLICore:
    """CLI core functionality encapsulation"""

    def __init__(self, config_path: str | None = None):
        self.config_path = config_path
        self.app_config: cfg.Config | None = None
        self.stored_config: cfg.Config | None = None
        self.metadata: SoundMetadata | None = None
        self.hierarchy: WwiseHierarchy | None = None
        self.name_map: NameMap | None = None
        self.is_initialized = False
        self.config_overrides: dict[str, Any] = {}

    def initialize(self, config_overrides: dict[str, Any] | None = None):
        """Load config and apply command line overrides"""
        if self.is_initialized:
            return

        if config_overrides:
            self.config_overrides.update(config_overrides)

        if self.config_path != None:
            self.stored_config = cfg.load_config(self.config_path)
        else:
            self.stored_config = cfg.load_config()

        # Overrides only last for this run
        self.app_config = copy.deepcopy(self.stored_config)
        self._apply_config_overrides()

        self.is_initialized = True

    def _apply_config_overrides(self):
        """Apply config overrides"""
        for key, value in self.config_overrides.items():
            if hasattr(self.app_config, key):
                logger.info(f"Override config: {key} = {value}")
                setattr(self.app_config, key, value)
            else:
                logger.warning(f"Unknown config item: {key}")

    def get_config(self) -> cfg.Config:
        if self.app_config == None:
            raise RuntimeError("CLI core not initialized")
        return self.app_config

    def load_metadata(self, game_dir: str):
        """
        @exception
        - FormatError
        - OSError
        """
        metadata_path = os.path.join(game_dir, SOUND_METADATA_FILE_NAME)
        if not os.path.isfile(metadata_path):
            raise OSError(f"Can't find {SOUND_METADATA_FILE_NAME} in {game_dir}")
        self.metadata = SoundMetadata.from_file(metadata_path)
        return self.metadata

    def load_soundbanks(self, game_dir: str):
        """
        Decode every soundbank of every package, one blob at a time, in
        package enumeration order.

        @exception
        - FormatError
        - OSError
        """
        self.hierarchy = WwiseHierarchy("working set")
        for package_path in list_packages(game_dir):
            package = WwisePackage.from_file(package_path)
            for blob_name, blob in package.iter_soundbanks():
                self.hierarchy.import_hierarchy(WwiseHierarchy.from_bytes(blob, blob_name))
        self.hierarchy.validate_paths()
        logger.info(
            f"Working set: {len(self.hierarchy.entries)} music objects from {game_dir}"
        )
        return self.hierarchy

    def resolve_names(self):
        if self.metadata == None or self.hierarchy == None:
            raise RuntimeError("Metadata and soundbanks must be loaded first")
        self.name_map = resolve_names(
            self.hierarchy,
            self.metadata.get_vocabulary(),
            self.get_config().skip_state_group_roots
        )
        return self.name_map

    def load_game_dir(self, game_dir: str):
        """
        @exception
        - FormatError
        - OSError
        """
        self.load_metadata(game_dir)
        self.load_soundbanks(game_dir)
        self.resolve_names()
        if self.stored_config != None:
            self.stored_config.add_recent_game_dir(
                fileutil.to_posix(os.path.abspath(game_dir))
            )

    async def extract(self, snd_path: str, output_dir: str) -> ExtractionReport:
        """
        @exception
        - CalledProcessError
        - FormatError
        - OSError
        """
        if self.metadata == None or self.name_map == None:
            raise RuntimeError("Game directory must be loaded first")
        if not os.path.isfile(snd_path):
            raise OSError(f"Can't find {snd_path}")

        app_config = self.get_config()

        tools = env.get_tool_paths(app_config.utils_path)
        if app_config.auto_convert:
            mediautil.check_tools(*tools)

        snd_output_dir = os.path.join(output_dir, fileutil.stem(snd_path))
        os.makedirs(snd_output_dir, exist_ok=True)

        extractor = SndExtractor(self.metadata, self.name_map, app_config.extract_unused)
        report = extractor.extract(snd_path, snd_output_dir)

        if app_config.auto_convert:
            converted, _ = await mediautil.convert_wem_to_ogg_batch(report.get_wems(), *tools)
            report.converted = converted

        return report

    def cleanup(self):
        """Persist config"""
        if self.stored_config == None:
            return
        if self.config_path != None:
            self.stored_config.save_config(self.config_path)
        else:
            self.stored_config.save_config()
