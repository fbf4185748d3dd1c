from pathlib import Path
from typing import List, Union
from omegaconf import OmegaConf
from omegaconf.dictconfig import DictConfig


def merge_configs(configs: List[Union[str, Path, dict, DictConfig]]) -> DictConfig:
    """
    Merge configuration sources with precedence. Later configs override earlier ones.

    Each entry may be a path to a YAML file, a plain dict, or a DictConfig.
    Useful for applying file overrides on top of built-in defaults.

    Args:
        configs: Config sources. Later sources take precedence.

    Returns:
        DictConfig: Merged configuration object

    Raises:
        ValueError: If configs is empty
        FileNotFoundError: If any config file doesn't exist

    Example:
        >>> config = merge_configs([DEFAULTS, "config/crawl.yaml"])
    """
    if not configs:
        raise ValueError("configs is empty!")

    merged = _load(configs[0])
    for config in configs[1:]:
        merged = OmegaConf.unsafe_merge(merged, _load(config))

    return merged


def _load(config: Union[str, Path, dict, DictConfig]) -> DictConfig:
    if isinstance(config, DictConfig):
        return config
    if isinstance(config, dict):
        return OmegaConf.create(config)
    return OmegaConf.load(config)
