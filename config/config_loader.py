import os

import yaml

DEFAULT_SETTINGS_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "settings.yaml")


class ConfigLoader:
    def __init__(self, config_file=DEFAULT_SETTINGS_PATH):
        self.config_file = config_file
        self.config = {}
        if os.path.exists(config_file):
            with open(config_file, "r", encoding="utf-8") as f:
                self.config = yaml.safe_load(f) or {}

    @classmethod
    def from_dict(cls, data):
        """Build a loader around an in-memory mapping (tests, embedding hosts)."""
        loader = cls.__new__(cls)
        loader.config_file = None
        loader.config = dict(data)
        return loader

    def get(self, *keys, default=None):
        """
        Fetch a value from the configuration.
        When a key path does not exist:
          - raise KeyError if no default is given
          - return the default otherwise
        """
        ref = self.config
        for key in keys:
            if isinstance(ref, dict) and key in ref:
                ref = ref[key]
            else:
                if default is not None:
                    return default
                raise KeyError(f"Configuration key {' -> '.join(keys)} not found and no default provided.")
        return ref
