import os
import pickle

from const import CONFIG_FILE_NAME
from log import logger


MAX_RECENT_GAME_DIRS = 10


class Config:

    def __init__(self,
                 utils_path: str = "",
                 auto_convert: bool = False,
                 extract_unused: bool = False,
                 skip_state_group_roots: bool = False,
                 recent_game_dirs: list[str] | None = None):
        self.utils_path = utils_path
        self.auto_convert = auto_convert
        self.extract_unused = extract_unused
        self.skip_state_group_roots = skip_state_group_roots
        self.recent_game_dirs = recent_game_dirs if recent_game_dirs != None else []

    def add_recent_game_dir(self, game_dir: str):
        if game_dir in self.recent_game_dirs:
            self.recent_game_dirs.remove(game_dir)
        self.recent_game_dirs.insert(0, game_dir)
        del self.recent_game_dirs[MAX_RECENT_GAME_DIRS:]

    def save_config(self, config_path: str = CONFIG_FILE_NAME):
        """
        Failing to persist the configuration never aborts an extraction.
        """
        try:
            with open(config_path, "wb") as f:
                pickle.dump(self, f)
        except OSError as e:
            logger.error("Error occur when serializing configuration")
            logger.error(e)

    def get(self, attr: str, default=None):
        return getattr(self, attr, default)


def load_config(config_path: str = CONFIG_FILE_NAME) -> Config:
    """
    @return
    - The stored configuration, or a fresh default one when there is none or
    it cannot be read
    """
    if not os.path.exists(config_path):
        new_cfg = Config()
        new_cfg.save_config(config_path)
        return new_cfg

    cfg: Config | None = None
    try:
        with open(config_path, "rb") as f:
            cfg = pickle.load(f)
        if not isinstance(cfg, Config):
            raise ValueError("Invalid configuration data")
    except (OSError, pickle.UnpicklingError, EOFError, AttributeError, ValueError) as e:
        logger.critical("Error occurred when de-serializing configuration")
        logger.critical(e)
        logger.critical(f"Delete {config_path} to resolve the error")
        return Config()

    # For backwards compatibility with configuration created before these
    # were added
    cfg.utils_path = cfg.get("utils_path", "")
    cfg.auto_convert = cfg.get("auto_convert", False)
    cfg.extract_unused = cfg.get("extract_unused", False)
    cfg.skip_state_group_roots = cfg.get("skip_state_group_roots", False)
    cfg.recent_game_dirs = cfg.get("recent_game_dirs", [])
    cfg.recent_game_dirs = [d for d in cfg.recent_game_dirs if os.path.isdir(d)]
    return cfg
